# viscocorrect/units.py
# Unit conversion to the base units of the correction chart
# - Flowrate  -> m3/h
# - Head      -> m
# - Density   -> g/L
# - Viscosity -> mm2/s (dynamic viscosity needs the density)
# All factors are exact decimals, so string input stays exact through conversion.

from enum import Enum

from viscocorrect.decimal_value import DecimalValue, coerce

# ================================
# Units
# ================================
class FlowrateUnit(str, Enum):
    CUBIC_METERS_PER_HOUR = "m3/h"
    LITERS_PER_MINUTE = "L/min"
    GALLONS_PER_MINUTE = "gpm"


class HeadUnit(str, Enum):
    METERS = "m"
    FEET = "ft"


class ViscosityUnit(str, Enum):
    SQUARE_MILLIMETERS_PER_SECOND = "mm2/s"
    CENTISTOKES = "cSt"
    CENTIPOISE = "cP"
    MILLIPASCAL_SECONDS = "mPa.s"


class DensityUnit(str, Enum):
    GRAMS_PER_LITER = "g/L"
    KILOGRAMS_PER_CUBIC_METER = "kg/m3"


FLOW_UNITS = [u.value for u in FlowrateUnit]
HEAD_UNITS = [u.value for u in HeadUnit]
VISCOSITY_UNITS = [u.value for u in ViscosityUnit]
DENSITY_UNITS = [u.value for u in DensityUnit]

BASE_FLOWRATE_UNIT = FlowrateUnit.CUBIC_METERS_PER_HOUR
BASE_HEAD_UNIT = HeadUnit.METERS
BASE_VISCOSITY_UNIT = ViscosityUnit.SQUARE_MILLIMETERS_PER_SECOND
BASE_DENSITY_UNIT = DensityUnit.GRAMS_PER_LITER

# cP / mPa.s divided by the density in g/L gives mm2/s
DYNAMIC_VISCOSITY_UNITS = (ViscosityUnit.CENTIPOISE, ViscosityUnit.MILLIPASCAL_SECONDS)

# Multiply by these to get the base unit
FLOW_TO_M3H = {
    FlowrateUnit.CUBIC_METERS_PER_HOUR: DecimalValue.parse("1"),
    FlowrateUnit.LITERS_PER_MINUTE: DecimalValue.parse("0.06"),
    FlowrateUnit.GALLONS_PER_MINUTE: DecimalValue.parse("0.227125"),
}

HEAD_TO_M = {
    HeadUnit.METERS: DecimalValue.parse("1"),
    HeadUnit.FEET: DecimalValue.parse("0.3048"),
}

DENSITY_TO_GPL = {
    DensityUnit.GRAMS_PER_LITER: DecimalValue.parse("1"),
    DensityUnit.KILOGRAMS_PER_CUBIC_METER: DecimalValue.parse("0.001"),
}

_FACTORS = {
    FlowrateUnit: FLOW_TO_M3H,
    HeadUnit: HEAD_TO_M,
    DensityUnit: DENSITY_TO_GPL,
}


def _factor(unit):
    table = _FACTORS.get(type(unit))
    if table is None:
        raise ValueError(f"Unsupported unit: {unit!r}")
    return table[unit]


# ================================
# Conversion
# ================================
def convert_to_base(value, unit):
    """value [unit] -> base unit (m3/h, m or g/L). Viscosity has its own function."""
    return coerce(value) * _factor(unit)


def convert_from_base(value, unit):
    """base unit -> value [unit]; goes through a division, so float precision only"""
    return coerce(value) / _factor(unit)


def flow_to_m3h(flow, unit):
    return convert_to_base(flow, FlowrateUnit(unit))


def m3h_to_flow(val_m3h, unit):
    return convert_from_base(val_m3h, FlowrateUnit(unit))


def head_to_m(head, unit):
    return convert_to_base(head, HeadUnit(unit))


def m_to_head(val_m, unit):
    return convert_from_base(val_m, HeadUnit(unit))


def density_to_gpl(density, unit):
    return convert_to_base(density, DensityUnit(unit))


def gpl_to_density(val_gpl, unit):
    return convert_from_base(val_gpl, DensityUnit(unit))


def convert_viscosity_to_base(value, unit, density=0, density_unit=BASE_DENSITY_UNIT):
    """
    Viscosity -> mm2/s.

    cSt and mm2/s are the same number. cP / mPa.s are divided by the density
    in g/L; a zero density gives 0 (the calculator then rejects the viscosity).
    """
    unit = ViscosityUnit(unit)
    value = coerce(value)
    if unit not in DYNAMIC_VISCOSITY_UNITS:
        return value

    density = convert_to_base(density, DensityUnit(density_unit))
    if density.is_zero:
        return DecimalValue()
    return value / density
