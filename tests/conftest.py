"""Shared test fixtures."""

import logging

import pytest

from src.bindgen.binding_compiler import BindingCompiler
from src.bindgen.compiler import CompilationContext, PipelineSynthesizer
from src.bindgen.ir import CallKind
from tests.binding_models import CAPABILITIES, Address, Person, View


@pytest.fixture
def capabilities():
    return CAPABILITIES


@pytest.fixture
def compiler(capabilities):
    return BindingCompiler(capabilities)


@pytest.fixture
def ctx():
    return CompilationContext(kind=CallKind.WHEN_CHANGED)


@pytest.fixture
def synthesizer(capabilities, ctx):
    return PipelineSynthesizer(capabilities, ctx)


@pytest.fixture
def person():
    return Person(name="Ada", age=36, address=Address(city="X"))


@pytest.fixture
def view():
    return View()


@pytest.fixture
def bindgen_logs(caplog):
    """Capture bindgen log records at DEBUG level."""
    caplog.set_level(logging.DEBUG, logger="src.bindgen")
    return caplog
