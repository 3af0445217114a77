"""Tests for typeann.inclusion."""

from __future__ import annotations

import logging

import pytest

from typeann.errors import MissingTypeInfoError
from typeann.inclusion import GeneratorFilter, InclusionMerger
from typeann.models import Contract, FunctionOccurrence, FunctionSignature, SignaturePair
from typeann.resolver import ModuleTypes

INC = "/proj/include/h.hrl"
T1 = SignaturePair("integer()", ("integer()",))
T2 = SignaturePair("atom()", ("atom()",))


def _merger() -> InclusionMerger:
    return InclusionMerger(GeneratorFilter({".yrl": ".erl"}, "yeccpre.hrl"))


def _occurrence(name: str, arity: int, line: int, origin: str = INC) -> FunctionOccurrence:
    return FunctionOccurrence(origin_file=origin, line=line, name=name, arity=arity)


def test_conflicting_types_drop_function_with_one_warning(caplog) -> None:
    merger = _merger()
    caplog.set_level(logging.WARNING, logger="typeann")

    merger.add(_occurrence("f", 1, 10), T1)
    merger.add(_occurrence("f", 1, 10), T2)
    merger.add(_occurrence("f", 1, 10), T1)

    assert merger.finalize() == {}
    assert merger.warnings == [
        f"Skip function f/1 in file {INC} because of inconsistent type"
    ]
    assert sum("inconsistent type" in record.message for record in caplog.records) == 1


def test_agreeing_types_are_kept_once() -> None:
    merger = _merger()

    merger.add(_occurrence("f", 1, 10), T1)
    merger.add(_occurrence("f", 1, 10), SignaturePair("integer()", ("integer()",)))

    (function,) = merger.finalize()[INC]
    assert (function.name, function.arity, function.line) == ("f", 1, 10)
    assert function.type_info == T1
    assert merger.warnings == []


def test_contract_and_pair_are_never_equal() -> None:
    merger = _merger()

    merger.add(_occurrence("f", 1, 10), Contract("(integer()) -> integer()"))
    merger.add(_occurrence("f", 1, 10), T1)

    assert merger.finalize() == {}
    assert len(merger.warnings) == 1


def test_drop_only_affects_conflicting_function() -> None:
    merger = _merger()

    merger.add(_occurrence("g", 0, 2), T1)
    merger.add(_occurrence("f", 1, 10), T1)
    merger.add(_occurrence("f", 1, 10), T2)

    result = merger.finalize()
    assert [function.name for function in result[INC]] == ["g"]


def test_finalize_sorts_each_file_by_line() -> None:
    merger = _merger()
    other = "/proj/include/other.hrl"

    merger.add(_occurrence("late", 0, 40), T1)
    merger.add(_occurrence("early", 0, 4), T1)
    merger.add(_occurrence("mid", 0, 20), T1)
    merger.add(_occurrence("x", 0, 1, origin=other), T1)

    result = merger.finalize()
    assert list(result) == [INC, other]
    assert [function.line for function in result[INC]] == [4, 20, 40]


def test_add_module_looks_up_types() -> None:
    merger = _merger()
    types = ModuleTypes("m", {FunctionSignature("f", 1): T1})

    merger.add_module([_occurrence("f", 1, 3)], types)

    assert merger.finalize()[INC][0].type_info == T1


def test_add_module_requires_type_info() -> None:
    merger = _merger()

    with pytest.raises(MissingTypeInfoError, match="No type info for function: m:f/1"):
        merger.add_module([_occurrence("f", 1, 3)], ModuleTypes("m"))


def test_generator_source_filters_generated_output() -> None:
    merger = _merger()
    types = ModuleTypes(
        "parser",
        {FunctionSignature("yeccpars0", 5): T1, FunctionSignature("r", 0): T1},
    )

    merger.add_module(
        [
            _occurrence("r", 0, 3, origin="/proj/src/parser.erl"),
            _occurrence("yeccpars0", 5, 12, origin="/proj/src/parser.yrl"),
        ],
        types,
    )

    assert merger.finalize() == {}


def test_generator_preamble_is_always_filtered() -> None:
    generators = GeneratorFilter({".yrl": ".erl"}, "yeccpre.hrl")

    assert generators.is_generated("/usr/lib/parsetools/include/yeccpre.hrl")
    assert not generators.is_generated(INC)
    assert generators.is_generated("/proj/src/grammar.yrl")
    assert generators.is_generated("/proj/src/grammar.erl")
    assert generators.filtered == ["/proj/src/grammar.yrl", "/proj/src/grammar.erl"]
