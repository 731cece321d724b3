import threading

import pytest

import viscocorrect.project as project_module
from viscocorrect.calculator import ErrorFlag
from viscocorrect.decimal_value import DecimalValue
from viscocorrect.project import Project
from viscocorrect.units import FlowrateUnit, ViscosityUnit


@pytest.fixture
def project(context):
    return Project(context, "100", "100", "100", name="reference")


@pytest.fixture
def count_conversions(monkeypatch):
    calls = {"base": 0, "viscosity": 0}
    convert_to_base = project_module.convert_to_base
    convert_viscosity_to_base = project_module.convert_viscosity_to_base

    def counting_to_base(*args):
        calls["base"] += 1
        return convert_to_base(*args)

    def counting_viscosity(*args):
        calls["viscosity"] += 1
        return convert_viscosity_to_base(*args)

    monkeypatch.setattr(project_module, "convert_to_base", counting_to_base)
    monkeypatch.setattr(project_module, "convert_viscosity_to_base", counting_viscosity)
    return calls


def test_results_are_computed_lazily(project, calculator):
    assert not project.was_computed
    assert project.q == pytest.approx(0.98, abs=0.01)
    assert project.was_computed
    assert project.calculate() == calculator.calculate_for("100", "100", "100")
    assert project.eta == pytest.approx(0.75, abs=0.01)
    assert project.h_06 == project.h[0]
    assert project.error_flag == ErrorFlag.NONE
    assert not project.has_error


def test_setter_invalidates_result(project):
    assert project.q > 0
    project.set_flowrate("5.999")
    assert not project.was_computed
    assert project.error_flag == ErrorFlag.FLOWRATE
    assert project.has_error
    assert (project.q, project.eta, project.h_12) == (0.0, 0.0, 0.0)


def test_empty_project(context):
    project = Project(context)
    assert project.error_flag == ErrorFlag.FLOWRATE | ErrorFlag.TOTAL_HEAD | ErrorFlag.VISCOSITY


def test_only_changed_fields_are_converted(project, count_conversions):
    project.calculate()
    # flowrate, head and density
    assert count_conversions == {"base": 3, "viscosity": 1}

    project.set_flowrate("150")
    project.calculate()
    assert count_conversions == {"base": 4, "viscosity": 1}

    project.set_head_unit("ft")
    project.calculate()
    assert count_conversions == {"base": 5, "viscosity": 1}

    # density feeds the viscosity conversion
    project.set_density("1")
    project.calculate()
    assert count_conversions == {"base": 6, "viscosity": 2}

    # reading again does not recompute
    project.q
    project.h_10
    assert count_conversions == {"base": 6, "viscosity": 2}


def test_unit_setters(project, calculator):
    project.set_flowrate("5000")
    project.set_flowrate_unit("L/min")
    assert project.flowrate_unit is FlowrateUnit.LITERS_PER_MINUTE
    assert project.calculate() == calculator.calculate_for("300", "100", "100")

    project.set_total_head("500")
    project.set_head_unit("ft")
    assert project.calculate() == calculator.calculate_for("300", "152.4", "100")


def test_dynamic_viscosity(project):
    expected = project.calculate()
    project.set_viscosity_unit(ViscosityUnit.CENTIPOISE)
    assert project.error_flag == ErrorFlag.VISCOSITY

    project.set_density("1000")
    project.set_density_unit("kg/m3")
    assert project.calculate() == expected

    project.set_viscosity("50")
    project.set_density("500")
    assert project.calculate() == expected


def test_set_replaces_everything(project, calculator):
    project.calculate()
    project.set("40", "20", "500", "0", "m3/h", "m", "cSt", "g/L")
    assert not project.was_computed
    assert project.viscosity_unit is ViscosityUnit.CENTISTOKES
    assert project.calculate() == calculator.calculate_for("40", "20", "500")


def test_inputs_are_kept_as_entered(project):
    project.set_viscosity(2.5)
    assert project.viscosity == 2.5
    assert project.flowrate == "100"
    parameters = project.parameters
    assert parameters.viscosity == DecimalValue.parse("2.5")
    assert parameters.flowrate_unit is FlowrateUnit.CUBIC_METERS_PER_HOUR


def test_converted(project):
    project.set_flowrate_unit("gpm")
    base = project.converted()
    assert base.is_standard
    assert base.flowrate == DecimalValue.parse("22.7125")
    assert base.total_head == DecimalValue.parse("100")


def test_bad_input_is_rejected_up_front(project):
    with pytest.raises(ValueError):
        project.set_flowrate_unit("barrel/day")
    with pytest.raises(ValueError):
        project.set_density_unit("lb/ft3")
    with pytest.raises(TypeError):
        project.set_total_head(None)
    with pytest.raises(TypeError):
        Project(flowrate=[1])
    # unchanged
    assert project.flowrate_unit is FlowrateUnit.CUBIC_METERS_PER_HOUR
    assert project.total_head == "100"


def test_copy_is_independent(project):
    project.calculate()
    clone = project.copy()
    assert clone.name == "reference"
    assert clone.context is project.context
    assert not clone.was_computed
    assert clone.calculate() == project.calculate()

    clone.set_flowrate("2")
    assert clone.has_error
    assert not project.has_error
    assert project.flowrate == "100"


def test_shared_between_threads(project, calculator):
    flows = ["10", "50", "100", "500", "1000"]
    expected = {f: calculator.calculate_for(f, "100", "100") for f in flows}
    failures = []

    def worker(flow):
        for _ in range(20):
            with project._lock:
                project.set_flowrate(flow)
                result = project.calculate()
            if result != expected[flow]:
                failures.append((flow, result))
            project.h_08

    threads = [threading.Thread(target=worker, args=(f,)) for f in flows]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert failures == []
    assert project.calculate() in expected.values()
