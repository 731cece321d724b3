# viscocorrect/project.py
# Stateful data-entry wrapper around the Calculator
# - Keeps the raw inputs (strings / numbers) and their units
# - Recomputes lazily, re-converting only the fields that changed
# - Safe to share between threads (one lock around inputs and cached result)

import logging
import threading

from viscocorrect.calculator import Calculator, CorrectionFactors, InputParameters
from viscocorrect.calibration import CalculationContext
from viscocorrect.decimal_value import coerce
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

# indices into Project._changed
FLOWRATE, TOTAL_HEAD, VISCOSITY, DENSITY = range(4)
FIELD_NAMES = ("flowrate", "total_head", "viscosity", "density")


class Project:
    def __init__(self, context=None, flowrate=0, total_head=0, viscosity=0, density=0,
                 flowrate_unit=BASE_FLOWRATE_UNIT, head_unit=BASE_HEAD_UNIT,
                 viscosity_unit=BASE_VISCOSITY_UNIT, density_unit=BASE_DENSITY_UNIT,
                 name=""):
        self.context = context if context is not None else CalculationContext()
        self.name = name
        self._calculator = Calculator(self.context)
        self._lock = threading.RLock()

        self._base = [None, None, None, None]
        self._changed = [True, True, True, True]
        self._computed = False
        self._result = CorrectionFactors()
        self.set(flowrate, total_head, viscosity, density,
                 flowrate_unit, head_unit, viscosity_unit, density_unit)

    # ---------- inputs ----------
    def set(self, flowrate, total_head, viscosity, density=0,
            flowrate_unit=BASE_FLOWRATE_UNIT, head_unit=BASE_HEAD_UNIT,
            viscosity_unit=BASE_VISCOSITY_UNIT, density_unit=BASE_DENSITY_UNIT):
        for value in (flowrate, total_head, viscosity, density):
            coerce(value)
        units = (FlowrateUnit(flowrate_unit), HeadUnit(head_unit),
                 ViscosityUnit(viscosity_unit), DensityUnit(density_unit))

        with self._lock:
            self._flowrate = flowrate
            self._total_head = total_head
            self._viscosity = viscosity
            self._density = density
            self._flowrate_unit, self._head_unit, self._viscosity_unit, self._density_unit = units
            self._indicate_change(FLOWRATE, TOTAL_HEAD, VISCOSITY, DENSITY)

    def set_flowrate(self, flowrate):
        coerce(flowrate)
        with self._lock:
            self._flowrate = flowrate
            self._indicate_change(FLOWRATE)

    def set_flowrate_unit(self, unit):
        unit = FlowrateUnit(unit)
        with self._lock:
            self._flowrate_unit = unit
            self._indicate_change(FLOWRATE)

    def set_total_head(self, total_head):
        coerce(total_head)
        with self._lock:
            self._total_head = total_head
            self._indicate_change(TOTAL_HEAD)

    def set_head_unit(self, unit):
        unit = HeadUnit(unit)
        with self._lock:
            self._head_unit = unit
            self._indicate_change(TOTAL_HEAD)

    def set_viscosity(self, viscosity):
        coerce(viscosity)
        with self._lock:
            self._viscosity = viscosity
            self._indicate_change(VISCOSITY)

    def set_viscosity_unit(self, unit):
        unit = ViscosityUnit(unit)
        with self._lock:
            self._viscosity_unit = unit
            self._indicate_change(VISCOSITY)

    def set_density(self, density):
        coerce(density)
        with self._lock:
            self._density = density
            self._indicate_change(DENSITY)

    def set_density_unit(self, unit):
        unit = DensityUnit(unit)
        with self._lock:
            self._density_unit = unit
            self._indicate_change(DENSITY)

    @property
    def flowrate(self):
        with self._lock:
            return self._flowrate

    @property
    def flowrate_unit(self):
        with self._lock:
            return self._flowrate_unit

    @property
    def total_head(self):
        with self._lock:
            return self._total_head

    @property
    def head_unit(self):
        with self._lock:
            return self._head_unit

    @property
    def viscosity(self):
        with self._lock:
            return self._viscosity

    @property
    def viscosity_unit(self):
        with self._lock:
            return self._viscosity_unit

    @property
    def density(self):
        with self._lock:
            return self._density

    @property
    def density_unit(self):
        with self._lock:
            return self._density_unit

    @property
    def parameters(self):
        """Inputs as entered, in their own units."""
        with self._lock:
            return InputParameters.create(
                self._flowrate, self._total_head, self._viscosity, self._density,
                self._flowrate_unit, self._head_unit, self._viscosity_unit, self._density_unit,
            )

    def converted(self):
        """Inputs in m3/h, m, mm2/s and g/L."""
        return self.parameters.converted()

    def copy(self):
        """New project with the same context, name and inputs (results are recomputed)."""
        with self._lock:
            return Project(
                self.context,
                self._flowrate, self._total_head, self._viscosity, self._density,
                self._flowrate_unit, self._head_unit, self._viscosity_unit, self._density_unit,
                name=self.name,
            )

    # ---------- results ----------
    def calculate(self):
        return self._factors()

    @property
    def was_computed(self):
        with self._lock:
            return self._computed

    @property
    def q(self):
        return self._factors().q

    @property
    def eta(self):
        return self._factors().eta

    @property
    def h(self):
        return self._factors().h

    @property
    def h_06(self):
        return self._factors().h_06

    @property
    def h_08(self):
        return self._factors().h_08

    @property
    def h_10(self):
        return self._factors().h_10

    @property
    def h_12(self):
        return self._factors().h_12

    @property
    def error_flag(self):
        return self._factors().error_flag

    @property
    def has_error(self):
        return not self._factors().ok

    # ---------- internals ----------
    def _indicate_change(self, *fields):
        # caller holds the lock
        for f in fields:
            self._changed[f] = True
        self._computed = False
        self._result = CorrectionFactors()

    def _factors(self):
        with self._lock:
            if not self._computed:
                self._recompute()
            return self._result

    def _recompute(self):
        changed = self._changed
        logger.debug("Recomputing %r (changed: %s)", self.name,
                     ", ".join(n for n, c in zip(FIELD_NAMES, changed) if c) or "nothing")

        if changed[FLOWRATE]:
            self._base[FLOWRATE] = convert_to_base(self._flowrate, self._flowrate_unit)
        if changed[TOTAL_HEAD]:
            self._base[TOTAL_HEAD] = convert_to_base(self._total_head, self._head_unit)
        if changed[VISCOSITY] or changed[DENSITY]:
            self._base[VISCOSITY] = convert_viscosity_to_base(
                self._viscosity, self._viscosity_unit, self._density, self._density_unit)
            self._base[DENSITY] = convert_to_base(self._density, self._density_unit)

        self._result = self._calculator.calculate(InputParameters(*self._base))
        self._computed = True
        self._changed = [False, False, False, False]
