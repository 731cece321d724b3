import logging

import pytest

from viscocorrect.calculator import Calculator
from viscocorrect.calibration import COEFFICIENT_COLUMNS, DEFAULT_COEFFICIENTS, CalculationContext


def pytest_addoption(parser):
    parser.addoption(
        "--viscocorrect-debug",
        action="store_true",
        default=False,
        help="Show debug logging from the viscocorrect package",
    )


@pytest.fixture(autouse=True)
def configure_viscocorrect_logging(request, caplog):
    """Route viscocorrect debug records to the captured log when --viscocorrect-debug is given."""
    if request.config.getoption("--viscocorrect-debug"):
        caplog.set_level(logging.DEBUG, logger="viscocorrect")
    yield


@pytest.fixture
def context():
    return CalculationContext()


@pytest.fixture
def calculator(context):
    return Calculator(context)


@pytest.fixture
def write_table(tmp_path):
    """Write calibration rows to a CSV file and return its path."""

    def _write(rows, header=COEFFICIENT_COLUMNS, name="coefficients.csv"):
        path = tmp_path / name
        lines = [",".join(header)]
        lines += [",".join(repr(v) if isinstance(v, float) else str(v) for v in row) for row in rows]
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write


@pytest.fixture
def default_rows():
    return DEFAULT_COEFFICIENTS.rows()
