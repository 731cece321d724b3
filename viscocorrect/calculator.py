# viscocorrect/calculator.py
# Correction factors for centrifugal pumps handling viscous liquids
# - Convert inputs to m3/h, m, mm2/s, g/L
# - Range check against the chart
# - Lay the "ruler" across the chart: flowrate -> head line -> viscosity line
# - Read Q, eta and the four H factors off the fitted correction curves

import logging
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from functools import cached_property

from viscocorrect.calibration import CalculationContext
from viscocorrect.decimal_value import DecimalValue, coerce
from viscocorrect.math_funcs import Linear, Logistic, Polynomial
from viscocorrect.scales import (
    FLOWRATE_SCALE,
    PITCH_TOTAL_HEAD,
    PITCH_VISCOSITY,
    PIXELS_CORRECTION_SCALE,
    START_TOTAL_HEAD,
    START_VISCOSITY,
    TOTAL_HEAD_SCALE,
    VISCOSITY_SCALE,
    fit_to_scale,
)
from viscocorrect.units import (
    BASE_DENSITY_UNIT,
    BASE_FLOWRATE_UNIT,
    BASE_HEAD_UNIT,
    BASE_VISCOSITY_UNIT,
    DensityUnit,
    FlowrateUnit,
    HeadUnit,
    ViscosityUnit,
    convert_to_base,
    convert_viscosity_to_base,
)

logger = logging.getLogger(__name__)

# Range covered by the chart, base units
FLOWRATE_RANGE = (6, 2000)
TOTAL_HEAD_RANGE = (5, 200)
VISCOSITY_RANGE = (10, 4000)

# Part of the correction axis each curve was fitted on. Left of it the
# factor is 1.0, right of it 0.0.
Q_DOMAIN = (242, 420)
ETA_DOMAIN = (122, 388)
H_DOMAIN = (146, 510)

Q_OFFSET = 0.2
ETA_OFFSET = 0.2
H_OFFSET = -0.3


class ErrorFlag(IntFlag):
    NONE = 0
    FLOWRATE = 1
    TOTAL_HEAD = 2
    VISCOSITY = 4
    CALIBRATION = 8
    INVALID_INPUT = 16


class HFactor(IntEnum):
    """Index into CorrectionFactors.h, named after Q/Q_opt."""
    H06 = 0
    H08 = 1
    H10 = 2
    H12 = 3


@dataclass(frozen=True)
class InputParameters:
    flowrate: DecimalValue
    total_head: DecimalValue
    viscosity: DecimalValue
    density: DecimalValue = field(default_factory=DecimalValue)
    flowrate_unit: FlowrateUnit = BASE_FLOWRATE_UNIT
    head_unit: HeadUnit = BASE_HEAD_UNIT
    viscosity_unit: ViscosityUnit = BASE_VISCOSITY_UNIT
    density_unit: DensityUnit = BASE_DENSITY_UNIT

    @classmethod
    def create(cls, flowrate, total_head, viscosity, density=0,
               flowrate_unit=BASE_FLOWRATE_UNIT, head_unit=BASE_HEAD_UNIT,
               viscosity_unit=BASE_VISCOSITY_UNIT, density_unit=BASE_DENSITY_UNIT):
        """Build from raw strings / numbers and unit labels."""
        return cls(
            coerce(flowrate),
            coerce(total_head),
            coerce(viscosity),
            coerce(density),
            FlowrateUnit(flowrate_unit),
            HeadUnit(head_unit),
            ViscosityUnit(viscosity_unit),
            DensityUnit(density_unit),
        )

    @property
    def is_standard(self):
        return (
            self.flowrate_unit == BASE_FLOWRATE_UNIT
            and self.head_unit == BASE_HEAD_UNIT
            and self.viscosity_unit == BASE_VISCOSITY_UNIT
            and self.density_unit == BASE_DENSITY_UNIT
        )

    def converted(self):
        """Same parameters in m3/h, m, mm2/s and g/L."""
        if self.is_standard:
            return self
        return InputParameters(
            convert_to_base(self.flowrate, self.flowrate_unit),
            convert_to_base(self.total_head, self.head_unit),
            convert_viscosity_to_base(self.viscosity, self.viscosity_unit,
                                      self.density, self.density_unit),
            convert_to_base(self.density, self.density_unit),
        )


@dataclass(frozen=True)
class CorrectionFactors:
    q: float = 0.0
    eta: float = 0.0
    h: tuple = (0.0, 0.0, 0.0, 0.0)
    error_flag: ErrorFlag = ErrorFlag.NONE

    @classmethod
    def failed(cls, error_flag):
        return cls(error_flag=ErrorFlag(error_flag))

    @property
    def ok(self):
        return self.error_flag == ErrorFlag.NONE

    @property
    def h_06(self):
        return self.h[HFactor.H06]

    @property
    def h_08(self):
        return self.h[HFactor.H08]

    @property
    def h_10(self):
        return self.h[HFactor.H10]

    @property
    def h_12(self):
        return self.h[HFactor.H12]


# ================================
# Calculator
# ================================
class Calculator:
    """
    Stateless apart from the coefficients of its context, so one instance can
    be shared between threads. Never raises for bad input: problems end up in
    CorrectionFactors.error_flag.
    """

    def __init__(self, context=None):
        self.context = context if context is not None else CalculationContext()

    @cached_property
    def _curves(self):
        c = self.context.coefficients
        return Polynomial(c.q), Polynomial(c.eta), tuple(Logistic(*h) for h in c.h)

    def convert_input(self, parameters):
        return parameters.converted()

    def validate_input(self, parameters):
        """ErrorFlag for every quantity outside the chart (or not a number)."""
        base = self.convert_input(parameters)
        errors = ErrorFlag.NONE
        checks = (
            (base.flowrate, FLOWRATE_RANGE, ErrorFlag.FLOWRATE),
            (base.total_head, TOTAL_HEAD_RANGE, ErrorFlag.TOTAL_HEAD),
            (base.viscosity, VISCOSITY_RANGE, ErrorFlag.VISCOSITY),
        )
        for value, (low, high), flag in checks:
            if not value.is_valid:
                errors |= flag | ErrorFlag.INVALID_INPUT
            elif not coerce(low) <= value <= coerce(high):
                errors |= flag
        return errors

    def correction_position(self, parameters):
        """
        x position on the correction axis where the ruler crosses it.

        Only meaningful for parameters that pass validate_input().
        """
        base = self.convert_input(parameters)
        flow_pos = fit_to_scale(FLOWRATE_SCALE, base.flowrate.to_float(), 0)
        # head lines start on the y-axis, viscosity lines on the x-axis
        head_pos = fit_to_scale(TOTAL_HEAD_SCALE, base.total_head.to_float(), START_TOTAL_HEAD[1])
        visc_pos = fit_to_scale(VISCOSITY_SCALE, base.viscosity.to_float(), START_VISCOSITY[0])

        head_line = Linear(PITCH_TOTAL_HEAD, START_TOTAL_HEAD[0], head_pos)
        visc_line = Linear(PITCH_VISCOSITY, visc_pos, START_VISCOSITY[1])
        return visc_line.solve_for_x(head_line(flow_pos))

    def calculate(self, parameters):
        if not self.context.wait_initialization():
            logger.warning("Calculation skipped: calibration context is not usable")
            return CorrectionFactors.failed(ErrorFlag.CALIBRATION)

        base = self.convert_input(parameters)
        errors = self.validate_input(base)
        if errors:
            logger.warning("Input outside the chart (%r): Q=%s m3/h, H=%s m, v=%s mm2/s",
                           errors, base.flowrate, base.total_head, base.viscosity)
            return CorrectionFactors.failed(errors)

        pos = self.correction_position(base)
        q_curve, eta_curve, h_curves = self._curves

        factors = CorrectionFactors(
            q=_read_curve(q_curve, pos, Q_DOMAIN, Q_OFFSET),
            eta=_read_curve(eta_curve, pos, ETA_DOMAIN, ETA_OFFSET),
            h=tuple(_read_curve(curve, pos, H_DOMAIN, H_OFFSET) for curve in h_curves),
        )
        logger.debug("Correction at x=%.3f: q=%.4f eta=%.4f h=%s", pos, factors.q, factors.eta, factors.h)
        return factors

    def calculate_for(self, flowrate, total_head, viscosity, density=0,
                      flowrate_unit=BASE_FLOWRATE_UNIT, head_unit=BASE_HEAD_UNIT,
                      viscosity_unit=BASE_VISCOSITY_UNIT, density_unit=BASE_DENSITY_UNIT):
        return self.calculate(InputParameters.create(
            flowrate, total_head, viscosity, density,
            flowrate_unit, head_unit, viscosity_unit, density_unit,
        ))


def _read_curve(curve, position, domain, offset):
    low, high = domain
    if low <= position <= high:
        return curve(position) / PIXELS_CORRECTION_SCALE / 10.0 + offset
    return 1.0 if position < low else 0.0
