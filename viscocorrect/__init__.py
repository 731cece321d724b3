# viscocorrect: viscosity correction factors (Q, eta, H) for centrifugal pumps
from viscocorrect.calculator import (
    Calculator,
    CorrectionFactors,
    ErrorFlag,
    HFactor,
    InputParameters,
)
from viscocorrect.calibration import (
    DEFAULT_COEFFICIENTS,
    CalculationContext,
    CalibrationCoefficients,
    CalibrationError,
    read_coefficients,
)
from viscocorrect.decimal_value import DecimalValue, Validity
from viscocorrect.project import Project
from viscocorrect.units import DensityUnit, FlowrateUnit, HeadUnit, ViscosityUnit

__version__ = "1.0.0"
