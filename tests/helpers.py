"""Shared assertions and seed records for the test suite."""

from dataclasses import dataclass

from orderflow import Error, Ok, Result, WorkflowError
from orderflow.catalog import Channel, Option, OptionGroup, Sale, SaleSnapshot, Section


def ok[T](result: Result[T, WorkflowError]) -> T:
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise AssertionError(f"expected Ok, got {e!r}")
    raise AssertionError(f"not a Result: {result!r}")


def err[T](result: Result[T, WorkflowError]) -> WorkflowError:
    match result:
        case Error(e):
            return e
        case Ok(value):
            raise AssertionError(f"expected Error, got {value!r}")
    raise AssertionError(f"not a Result: {result!r}")


@dataclass(frozen=True, slots=True)
class Shop:
    """One channel with two sellers, each with a priced sale and an option."""

    channel: Channel
    section: Section
    other_channel: Channel
    other_section: Section
    sale: Sale
    snapshot: SaleSnapshot
    group: OptionGroup
    option: Option
    other_sale: Sale
    other_snapshot: SaleSnapshot
    other_group: OptionGroup
    other_option: Option
