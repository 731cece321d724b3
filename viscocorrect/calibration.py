# viscocorrect/calibration.py
# Calibration coefficients of the correction curves
# - CalibrationCoefficients: validated, immutable curve fits (pydantic)
# - read_coefficients: CSV table "ID,C0..C5" (pandas)
# - CalculationContext: owns one coefficient set, optionally loaded on a worker thread

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from enum import IntEnum
from typing import Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

logger = logging.getLogger(__name__)

COEFFICIENT_COLUMNS = ["ID", "C0", "C1", "C2", "C3", "C4", "C5"]


class CalibrationError(Exception):
    """Raised when a calibration table cannot be read or is incomplete."""


class CurveId(IntEnum):
    Q = 0
    ETA = 1
    H06 = 2
    H08 = 3
    H10 = 4
    H12 = 5


H_CURVES = (CurveId.H06, CurveId.H08, CurveId.H10, CurveId.H12)

PolynomialCoefficients = Tuple[float, float, float, float, float, float]
# (L, k, x0)
LogisticCoefficients = Tuple[float, float, float]


class CalibrationCoefficients(BaseModel):
    """Curve fits of the chart: 5th order polynomials for Q and eta, logistic curves for H."""

    model_config = ConfigDict(frozen=True)

    q: PolynomialCoefficients
    eta: PolynomialCoefficients
    # ordered 0.6, 0.8, 1.0, 1.2 Q/Q_opt
    h: Tuple[LogisticCoefficients, LogisticCoefficients, LogisticCoefficients, LogisticCoefficients]

    @field_validator("q", "eta")
    @classmethod
    def _check_polynomial(cls, v):
        if not any(v):
            raise ValueError("polynomial has only zero coefficients")
        return v

    @field_validator("h")
    @classmethod
    def _check_logistic(cls, v):
        for curve_id, (L, k, _) in zip(H_CURVES, v):
            if L == 0 or k == 0:
                raise ValueError(f"{curve_id.name} needs a non-zero amplitude and steepness")
        return v

    @classmethod
    def from_rows(cls, rows):
        """
        Build from (ID, C0..C5) rows.

        H rows only use C0..C2. Unknown IDs are skipped, a later row with the
        same ID replaces an earlier one.
        """
        known = {c.value for c in CurveId}
        curves = {}
        for row in rows:
            curve_id, *coefficients = row
            if curve_id not in known:
                logger.debug("Skipping calibration row with unknown ID %r", curve_id)
                continue
            curves[CurveId(int(curve_id))] = tuple(coefficients)

        missing = [c.name for c in CurveId if c not in curves]
        if missing:
            raise CalibrationError(f"Calibration table misses curves: {', '.join(missing)}")

        try:
            return cls(
                q=curves[CurveId.Q],
                eta=curves[CurveId.ETA],
                h=tuple(curves[c][:3] for c in H_CURVES),
            )
        except ValidationError as exc:
            raise CalibrationError(f"Invalid calibration table: {exc}") from exc

    def rows(self):
        """Inverse of from_rows; H rows are padded with zeros."""
        out = [(int(CurveId.Q), *self.q), (int(CurveId.ETA), *self.eta)]
        for curve_id, curve in zip(H_CURVES, self.h):
            out.append((int(curve_id), *curve, 0.0, 0.0, 0.0))
        return out


# Fits of the published chart
DEFAULT_COEFFICIENTS = CalibrationCoefficients(
    q=(
        4.3286373442021278e-09, -6.5935466655309209e-06, 0.0039704102541411324,
        -1.1870337647376101, 176.52190832690891, -10276.558815133236,
    ),
    eta=(
        2.5116987378131985e-10, -3.2416532447274418e-07, 0.00015531747394399714,
        -0.037300324399145976, 4.2391803778160968, -6.2364025573465849,
    ),
    h=(
        (285.39113639063004, -0.019515612319848788, 451.79876054847699),  # 0.6
        (286.44331640461877, -0.016739174282778945, 453.11949555301783),  # 0.8
        (285.70823636118865, -0.016126836943018912, 443.60573501332937),  # 1.0
        (285.91175890816675, -0.015057232233799856, 436.03377039579027),  # 1.2
    ),
)


def read_coefficients(path):
    """Read a calibration CSV with the header ID,C0,C1,C2,C3,C4,C5."""
    try:
        frame = pd.read_csv(path, skipinitialspace=True)
    except (OSError, ValueError) as exc:
        raise CalibrationError(f"Cannot read calibration table {path}: {exc}") from exc

    frame.columns = [str(c).strip() for c in frame.columns]
    missing = [c for c in COEFFICIENT_COLUMNS if c not in frame.columns]
    if missing:
        raise CalibrationError(f"Calibration table {path} misses columns: {', '.join(missing)}")

    try:
        frame = frame[COEFFICIENT_COLUMNS].astype(float)
    except ValueError as exc:
        raise CalibrationError(f"Calibration table {path} has non-numeric cells: {exc}") from exc

    logger.debug("Read %d calibration rows from %s", len(frame), path)
    return CalibrationCoefficients.from_rows(frame.itertuples(index=False, name=None))


# ================================
# Context
# ================================
class CalculationContext:
    """
    Owns the calibration coefficients shared by calculators and projects.

    Given a `source`, the table is read on a worker thread and the context
    must not be used before wait_initialization() returned. A failed load is
    logged and reported through has_error / wait_initialization() == False.
    """

    def __init__(self, coefficients=None, source=None, executor=None):
        if coefficients is not None and source is not None:
            raise ValueError("Pass either coefficients or source, not both")

        self.source = source
        self._coefficients = None
        self._error = None
        self._future = None
        self._lock = threading.Lock()

        if source is None:
            self._coefficients = coefficients if coefficients is not None else DEFAULT_COEFFICIENTS
            return

        if executor is None:
            pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="viscocorrect-calibration")
            self._future = pool.submit(read_coefficients, source)
            pool.shutdown(wait=False)
        else:
            self._future = executor.submit(read_coefficients, source)

    def wait_initialization(self, timeout=None):
        """
        Block until loading finished. True if the coefficients are usable.

        With a timeout, False is also returned while the table is still
        loading; waiting again later is fine.
        """
        with self._lock:
            if self._future is not None:
                try:
                    self._coefficients = self._future.result(timeout)
                except FutureTimeoutError:
                    return False
                except Exception as e:
                    logger.error("Loading calibration table %s failed: %s", self.source, e)
                    self._error = e
                self._future = None
        return self._coefficients is not None

    @property
    def is_initialized(self):
        return self._coefficients is not None

    @property
    def has_error(self):
        return self._error is not None

    @property
    def error(self):
        return self._error

    @property
    def coefficients(self):
        if not self.wait_initialization():
            raise CalibrationError(f"Calculation context failed to initialize: {self._error}")
        return self._coefficients
