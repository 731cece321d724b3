# viscocorrect/scales.py
# Digitized geometry of the viscosity correction chart
# Every scale maps a chart value to the pixel distance from the previous
# breakpoint. The numbers come from measuring the printed chart and are used
# unchanged.

# Returned by fit_to_scale when the value lies beyond the last breakpoint
OUT_OF_SCALE = -1.0

# Flowrate [m3/h] on the x-axis
FLOWRATE_SCALE = {
    6: 0, 7: 11, 8: 9, 9: 8, 10: 7, 15: 28, 20: 20, 30: 28, 40: 20,
    50: 16, 60: 13, 70: 11, 80: 9, 90: 8, 100: 7, 150: 28, 200: 20,
    300: 28, 400: 20, 500: 16, 600: 13, 700: 11, 800: 9, 900: 8,
    1000: 7, 1500: 28, 2000: 20,
}

# Total head [m], one line per value
TOTAL_HEAD_SCALE = {
    5: 0, 6: 5, 7: 4, 8: 4, 9: 3, 10: 3, 15: 11, 20: 8, 30: 11, 40: 8,
    50: 6, 60: 5, 70: 4, 80: 4, 90: 3, 100: 3, 150: 11, 200: 8,
}

# Viscosity [mm2/s], one line per value
VISCOSITY_SCALE = {
    10: 0, 20: 30, 30: 18, 40: 12, 50: 10, 60: 8, 70: 7, 80: 6, 90: 5,
    100: 5, 150: 18, 200: 12, 300: 18, 400: 12, 500: 10, 600: 8, 700: 7,
    800: 6, 900: 5, 1000: 5, 1500: 18, 2000: 12, 3000: 18, 4000: 12,
}

# (x, y) where the head lines and the viscosity lines start
START_TOTAL_HEAD = (0, 40)
START_VISCOSITY = (249, 40)

# slope of the head lines and of the viscosity lines
PITCH_TOTAL_HEAD = 0.5
PITCH_VISCOSITY = -2.0

# pixels per 0.1 on the correction factor axis
PIXELS_CORRECTION_SCALE = 22.0


def fit_to_scale(scale, value, start=0):
    """
    Pixel position of value on a scale, counted from start.

    Walks the breakpoints in ascending order; between two breakpoints the
    position is interpolated linearly. Returns OUT_OF_SCALE if value lies
    above the last breakpoint.
    """
    position = float(start)
    prev = 0.0
    for key, distance in sorted(scale.items()):
        if key == value:
            return position + distance
        if key > value:
            return position + (value - prev) / (key - prev) * distance
        position += distance
        prev = float(key)
    return OUT_OF_SCALE
