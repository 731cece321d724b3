# viscocorrect/decimal_value.py
# Exact decimal numbers for user input
# - Parse decimal strings ("12.5", ".5", "-1.25e-3") without float rounding
# - Exact +, -, * on an unscaled integer + base-10 exponent
# - Division goes through float (lossy, by choice)
# - Overflow / bad input turn the value into NaN or Infinity, never an exception

import math
from enum import Enum

# Width of the unscaled magnitude (unsigned 64 bit) and of the exponent (unsigned 32 bit)
MAX_MAGNITUDE = 2 ** 64 - 1
MAX_EXPONENT = 2 ** 32 - 1
MAX_DIGITS = len(str(MAX_MAGNITUDE))

DEFAULT_PRECISION = 17

# Beyond this many digits of exponent difference the smaller operand cannot
# influence a 64 bit result anymore.
ALIGN_LIMIT = 2 * MAX_DIGITS

_DIGITS = frozenset("0123456789")


class Validity(Enum):
    VALID = "valid"
    NAN = "nan"
    INFINITY = "inf"


def _is_digits(text):
    return all(c in _DIGITS for c in text)


def _drop_digits(magnitude, count):
    """Drop the lowest `count` decimal digits of magnitude."""
    if count > MAX_DIGITS:
        return 0
    return magnitude // 10 ** count


class DecimalValue:
    """
    (-1)^negative * magnitude * 10^-exponent

    Values are immutable and always canonical: trailing zero digits are
    stripped while the exponent is positive and zero has no sign. Two valid
    values are therefore equal exactly when magnitude, exponent and sign match.
    """

    __slots__ = ("_magnitude", "_exponent", "_negative", "_validity")

    def __init__(self, magnitude=0, exponent=0, negative=False, validity=Validity.VALID):
        if magnitude < 0 or exponent < 0:
            raise ValueError("magnitude and exponent must be non-negative")

        if validity is Validity.VALID:
            if magnitude == 0:
                exponent, negative = 0, False
            while exponent > 0 and magnitude % 10 == 0:
                magnitude //= 10
                exponent -= 1
            if magnitude > MAX_MAGNITUDE or exponent > MAX_EXPONENT:
                validity = Validity.INFINITY

        if validity is not Validity.VALID:
            magnitude, exponent = 0, 0
            negative = bool(negative) and validity is Validity.INFINITY

        self._magnitude = magnitude
        self._exponent = exponent
        self._negative = bool(negative)
        self._validity = validity

    # ---------- constructors ----------
    @classmethod
    def nan(cls):
        return cls(validity=Validity.NAN)

    @classmethod
    def infinity(cls, negative=False):
        return cls(negative=negative, validity=Validity.INFINITY)

    @classmethod
    def parse(cls, text):
        """
        Parse [+-]digits[.digits][(e|E)[+-]digits].

        Any other character, or a second '.', gives NaN. A magnitude wider than
        64 bit or an exponent outside the supported range gives Infinity.
        Empty integer / fraction parts count as zero ("." == "0").
        """
        s = text
        negative = False
        if s[:1] in ("+", "-"):
            negative = s[0] == "-"
            s = s[1:]

        mantissa, sep, sci = s.replace("E", "e").partition("e")
        shift_digits = ""
        shift_negative = False
        if sep:
            shift_negative = sci[:1] == "-"
            shift_digits = sci[1:] if sci[:1] in ("+", "-") else sci
            if not shift_digits or not _is_digits(shift_digits):
                return cls.nan()

        if mantissa.count(".") > 1:
            return cls.nan()
        whole, _, fraction = mantissa.partition(".")
        if not (_is_digits(whole) and _is_digits(fraction)):
            return cls.nan()
        # an exponent needs a mantissa to scale
        if sep and not (whole or fraction):
            return cls.nan()

        whole = whole.lstrip("0")
        fraction = fraction.rstrip("0")
        digits = (whole + fraction).lstrip("0")
        if not digits:
            return cls()
        if len(digits) > MAX_DIGITS:
            return cls.infinity(negative)

        shift_digits = shift_digits.lstrip("0")
        if len(shift_digits) > len(str(MAX_EXPONENT)):
            return cls.infinity(negative)
        shift = int(shift_digits or "0")
        exponent = len(fraction) + shift if shift_negative else len(fraction) - shift

        magnitude = int(digits)
        if exponent < 0:
            if -exponent > MAX_DIGITS:
                return cls.infinity(negative)
            magnitude *= 10 ** -exponent
            exponent = 0
        return cls(magnitude, exponent, negative)

    @classmethod
    def from_float(cls, value, precision=DEFAULT_PRECISION):
        """Render value with `precision` significant digits and parse that."""
        if math.isnan(value):
            return cls.nan()
        if math.isinf(value):
            return cls.infinity(value < 0)
        return cls.parse(f"{value:.{precision}g}")

    # ---------- accessors ----------
    @property
    def magnitude(self):
        return self._magnitude

    @property
    def exponent(self):
        return self._exponent

    @property
    def negative(self):
        return self._negative

    @property
    def validity(self):
        return self._validity

    @property
    def is_valid(self):
        return self._validity is Validity.VALID

    @property
    def is_nan(self):
        return self._validity is Validity.NAN

    @property
    def is_infinite(self):
        return self._validity is Validity.INFINITY

    @property
    def is_zero(self):
        return self.is_valid and self._magnitude == 0

    def to_float(self):
        if self.is_nan:
            return math.nan
        if self.is_infinite:
            return -math.inf if self._negative else math.inf
        if self._exponent - MAX_DIGITS > 330:
            result = 0.0
        else:
            # int / int is correctly rounded, so "123.456" gives exactly 123.456
            result = self._magnitude / 10 ** self._exponent
        return -result if self._negative else result

    __float__ = to_float

    # ---------- arithmetic ----------
    def __neg__(self):
        return DecimalValue(self._magnitude, self._exponent, not self._negative, self._validity)

    def __pos__(self):
        return self

    def __abs__(self):
        return DecimalValue(self._magnitude, self._exponent, False, self._validity)

    def __add__(self, other):
        other = _operand(other)
        if other is None:
            return NotImplemented

        if not (self.is_valid and other.is_valid):
            if self.is_nan or other.is_nan:
                return DecimalValue.nan()
            if self.is_infinite and other.is_infinite and self._negative != other._negative:
                return DecimalValue.nan()
            return DecimalValue.infinity((self if self.is_infinite else other)._negative)

        if other._magnitude == 0:
            return self
        if self._magnitude == 0:
            return other

        a_mag, a_exp = self._magnitude, self._exponent
        b_mag, b_exp = other._magnitude, other._exponent
        if a_exp - b_exp > ALIGN_LIMIT:
            a_mag = _drop_digits(a_mag, a_exp - b_exp - ALIGN_LIMIT)
            a_exp = b_exp + ALIGN_LIMIT
        elif b_exp - a_exp > ALIGN_LIMIT:
            b_mag = _drop_digits(b_mag, b_exp - a_exp - ALIGN_LIMIT)
            b_exp = a_exp + ALIGN_LIMIT

        exponent = max(a_exp, b_exp)
        a_mag *= 10 ** (exponent - a_exp)
        b_mag *= 10 ** (exponent - b_exp)

        if self._negative == other._negative:
            magnitude, negative = a_mag + b_mag, self._negative
        elif a_mag >= b_mag:
            magnitude, negative = a_mag - b_mag, self._negative
        else:
            magnitude, negative = b_mag - a_mag, other._negative

        return _fit(magnitude, exponent, negative)

    __radd__ = __add__

    def __sub__(self, other):
        other = _operand(other)
        if other is None:
            return NotImplemented
        return self + (-other)

    def __rsub__(self, other):
        other = _operand(other)
        if other is None:
            return NotImplemented
        return other + (-self)

    def __mul__(self, other):
        other = _operand(other)
        if other is None:
            return NotImplemented

        negative = self._negative != other._negative
        if not (self.is_valid and other.is_valid):
            return _invalid_product(self, other, negative)

        a_mag, a_exp = self._magnitude, self._exponent
        b_mag, b_exp = other._magnitude, other._exponent
        # Give up precision on the operand with more fractional digits until the
        # product fits again.
        while a_mag * b_mag > MAX_MAGNITUDE or a_exp + b_exp > MAX_EXPONENT:
            if a_mag == 0 or b_mag == 0:
                return DecimalValue()
            if a_exp == 0 and b_exp == 0:
                return DecimalValue.infinity(negative)
            if a_exp >= b_exp:
                a_mag //= 10
                a_exp -= 1
            else:
                b_mag //= 10
                b_exp -= 1

        return DecimalValue(a_mag * b_mag, a_exp + b_exp, negative)

    __rmul__ = __mul__

    def __truediv__(self, other):
        other = _operand(other)
        if other is None:
            return NotImplemented
        return _divide(self, other)

    def __rtruediv__(self, other):
        other = _operand(other)
        if other is None:
            return NotImplemented
        return _divide(other, self)

    # ---------- comparison / display ----------
    def _key(self):
        return (self._validity, self._magnitude, self._exponent, self._negative)

    def __eq__(self, other):
        if not isinstance(other, DecimalValue):
            return NotImplemented
        if self.is_nan or other.is_nan:
            return False
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        c = _compare(self, other)
        return c if c is NotImplemented else c is not None and c < 0

    def __le__(self, other):
        c = _compare(self, other)
        return c if c is NotImplemented else c is not None and c <= 0

    def __gt__(self, other):
        c = _compare(self, other)
        return c if c is NotImplemented else c is not None and c > 0

    def __ge__(self, other):
        c = _compare(self, other)
        return c if c is NotImplemented else c is not None and c >= 0

    def __bool__(self):
        return not self.is_zero

    def __str__(self):
        if self.is_nan:
            return "nan"
        if self.is_infinite:
            return "-inf" if self._negative else "inf"

        digits = str(self._magnitude)
        if self._exponent > ALIGN_LIMIT:
            digits = f"{digits}e-{self._exponent}"
        elif self._exponent:
            digits = digits.rjust(self._exponent + 1, "0")
            digits = f"{digits[:-self._exponent]}.{digits[-self._exponent:]}"
        return f"-{digits}" if self._negative else digits

    def __repr__(self):
        return f"DecimalValue('{self}')"


# ================================
# Helpers
# ================================
def coerce(value):
    """Turn a str / int / float / DecimalValue into a DecimalValue."""
    if isinstance(value, DecimalValue):
        return value
    if isinstance(value, str):
        return DecimalValue.parse(value)
    if isinstance(value, bool):
        raise TypeError("bool is not a numeric input")
    if isinstance(value, int):
        return DecimalValue.parse(str(value))
    if isinstance(value, float):
        return DecimalValue.from_float(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to DecimalValue")


def _operand(value):
    try:
        return coerce(value)
    except TypeError:
        return None


def _fit(magnitude, exponent, negative):
    while magnitude > MAX_MAGNITUDE and exponent > 0:
        magnitude //= 10
        exponent -= 1
    if magnitude > MAX_MAGNITUDE:
        return DecimalValue.infinity(negative)
    return DecimalValue(magnitude, exponent, negative)


def _compare(a, b):
    """-1 / 0 / 1, None if either side is NaN."""
    if not isinstance(b, DecimalValue):
        return NotImplemented
    if a.is_nan or b.is_nan:
        return None
    if a.is_infinite or b.is_infinite:
        return _cmp(_rank(a), _rank(b))

    sign_a, sign_b = _sign(a), _sign(b)
    if sign_a != sign_b or sign_a == 0:
        return _cmp(sign_a, sign_b)

    # a magnitude has at most MAX_DIGITS digits, so a larger gap decides alone
    shift = a.exponent - b.exponent
    if shift > MAX_DIGITS:
        result = -1
    elif -shift > MAX_DIGITS:
        result = 1
    elif shift > 0:
        result = _cmp(a.magnitude, b.magnitude * 10 ** shift)
    else:
        result = _cmp(a.magnitude * 10 ** -shift, b.magnitude)
    return result * sign_a


def _cmp(x, y):
    return (x > y) - (x < y)


def _sign(value):
    if value.is_zero:
        return 0
    return -1 if value.negative else 1


def _rank(value):
    if value.is_valid:
        return 0
    return -1 if value.negative else 1


def _invalid_product(a, b, negative):
    if a.is_nan or b.is_nan:
        return DecimalValue.nan()
    # inf * 0
    if a.is_zero or b.is_zero:
        return DecimalValue.nan()
    return DecimalValue.infinity(negative)


def _divide(a, b):
    negative = a.negative != b.negative
    if a.is_nan or b.is_nan or (a.is_infinite and b.is_infinite):
        return DecimalValue.nan()
    if a.is_infinite:
        return DecimalValue.infinity(negative)
    if b.is_infinite:
        return DecimalValue()
    if b.magnitude == 0:
        return DecimalValue.infinity(negative)

    # bring both to the same exponent, then let float do the division
    shift = a.exponent - b.exponent
    if shift > ALIGN_LIMIT + 330:
        return DecimalValue()
    if -shift > ALIGN_LIMIT + 330:
        return DecimalValue.infinity(negative)
    a_mag, b_mag = a.magnitude, b.magnitude
    if shift > 0:
        b_mag *= 10 ** shift
    else:
        a_mag *= 10 ** -shift

    try:
        quotient = a_mag / b_mag
    except OverflowError:
        return DecimalValue.infinity(negative)
    return DecimalValue.from_float(-quotient if negative else quotient)
