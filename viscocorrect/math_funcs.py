# viscocorrect/math_funcs.py
# Curve primitives used to replay the chart numerically
# - Polynomial  (coefficients highest power first)
# - Linear      (point + slope form, solvable for x)
# - Logistic    (L / (1 + e^(-k(x - x0))))

import math

# math.exp overflows a float above this argument
_EXP_LIMIT = 709.0


class Polynomial:
    """c[0]*x^(n-1) + c[1]*x^(n-2) + ... + c[n-1]"""

    def __init__(self, coefficients):
        self.coefficients = tuple(coefficients)

    def __call__(self, x):
        result = 0
        for c in self.coefficients:
            result = result * x + c
        return result

    @property
    def degree(self):
        return max(len(self.coefficients) - 1, 0)

    def __repr__(self):
        return f"Polynomial({list(self.coefficients)})"


class Linear:
    """y = slope * (x - x0) + y0"""

    def __init__(self, slope, x0, y0):
        self.slope = slope
        self.x0 = x0
        self.y0 = y0

    @property
    def intercept(self):
        return self.y0 - self.slope * self.x0

    def __call__(self, x):
        return self.slope * (x - self.x0) + self.y0

    def solve_for_x(self, y):
        """x where the line reaches y; 0 for a horizontal line."""
        if self.slope == 0:
            return 0
        return (y - self.intercept) / self.slope

    def __repr__(self):
        return f"Linear(slope={self.slope}, x0={self.x0}, y0={self.y0})"


class Logistic:
    """y = L / (1 + e^(-k(x - x0)))"""

    def __init__(self, L, k, x0):
        self.L = L
        self.k = k
        self.x0 = x0

    def __call__(self, x):
        z = -self.k * (x - self.x0)
        if z > _EXP_LIMIT:
            return 0.0
        return self.L / (1.0 + math.exp(z))

    def __repr__(self):
        return f"Logistic(L={self.L}, k={self.k}, x0={self.x0})"
