from typing import Protocol

import pytest

from contractbind import (
    Container,
    Contract,
    RegistrationNotFoundError,
    ResolutionError,
    create_dependency,
    create_implementation,
)


class ILogger(Protocol):
    def log(self, *args: object) -> None: ...


class IFormatter(Protocol):
    def format(self, message: str) -> str: ...


LoggerContract: Contract[ILogger] = Contract("Logger")
FormatterContract: Contract[IFormatter] = Contract("Formatter")


class ConsoleLogger:
    def log(self, *args: object) -> None:
        pass


class FileLogger:
    def log(self, *args: object) -> None:
        pass


class UpperCaseFormatter:
    def format(self, message: str) -> str:
        return message.upper()


class FormattingLogger:
    def __init__(self, formatter: IFormatter) -> None:
        self.formatter = formatter

    def log(self, *args: object) -> None:
        pass


create_implementation(LoggerContract, ConsoleLogger)
create_implementation(LoggerContract, FileLogger)
create_implementation(FormatterContract, UpperCaseFormatter)
create_implementation(LoggerContract, FormattingLogger, [FormatterContract])


def test_resolve_registered_implementation():
    c = Container()
    c.register(ConsoleLogger)
    assert isinstance(c.resolve(LoggerContract), ConsoleLogger)


def test_resolve_injects_declared_dependencies():
    c = Container()
    c.register(UpperCaseFormatter)
    c.register(FormattingLogger)

    logger = c.resolve(LoggerContract)
    assert isinstance(logger, FormattingLogger)
    assert isinstance(logger.formatter, UpperCaseFormatter)
    assert logger.formatter.format("hi") == "HI"


def test_last_registered_implementation_wins():
    c = Container()
    c.register(ConsoleLogger)
    c.register(FileLogger)
    assert isinstance(c.resolve(LoggerContract), FileLogger)


def test_last_registered_instance_wins():
    c = Container()
    first = ConsoleLogger()
    second = ConsoleLogger()
    c.register_instance(LoggerContract, first)
    c.register_instance(LoggerContract, second)
    assert c.resolve(LoggerContract) is second


def test_last_registered_factory_wins():
    c = Container()
    c.register_factory(LoggerContract, ConsoleLogger)
    c.register_factory(LoggerContract, FileLogger)
    assert isinstance(c.resolve(LoggerContract), FileLogger)


def test_instance_takes_precedence_over_implementation_and_factory():
    c = Container()
    inst = ConsoleLogger()
    c.register_factory(LoggerContract, FileLogger)
    c.register(FileLogger)
    c.register_instance(LoggerContract, inst)
    assert c.resolve(LoggerContract) is inst


def test_implementation_takes_precedence_over_factory():
    c = Container()
    c.register_factory(LoggerContract, FileLogger)
    c.register(ConsoleLogger)
    assert isinstance(c.resolve(LoggerContract), ConsoleLogger)


def test_factory_is_invoked_on_every_resolve():
    c = Container()
    calls = []

    def make_logger() -> ConsoleLogger:
        calls.append(1)
        return ConsoleLogger()

    c.register_factory(LoggerContract, make_logger)

    a = c.resolve(LoggerContract)
    b = c.resolve(LoggerContract)
    assert a is not b
    assert len(calls) == 2


def test_registered_none_instance_is_returned():
    c = Container()
    c.register_instance(LoggerContract, None)
    assert c.resolve(LoggerContract) is None


def test_resolve_unregistered_contract_raises():
    c = Container()
    with pytest.raises(RegistrationNotFoundError) as ctx:
        c.resolve(LoggerContract)

    assert str(ctx.value) == "No registration found for Logger"
    assert ctx.value.contract is LoggerContract
    assert isinstance(ctx.value, ResolutionError)
    assert isinstance(ctx.value, LookupError)


def test_unsatisfied_nested_dependency_names_missing_contract():
    c = Container()
    c.register(FormattingLogger)
    with pytest.raises(RegistrationNotFoundError, match="Formatter"):
        c.resolve(LoggerContract)


def test_optional_dependency_resolves_to_none():
    c = Container()
    missing = Contract("Missing")

    class Service:
        def __init__(self, logger, missing):
            self.logger = logger
            self.missing = missing

    service_contract = Contract("Service")
    create_implementation(service_contract, Service, [LoggerContract, (missing, {"optional": True})])

    c.register(ConsoleLogger)
    c.register(Service)

    service = c.resolve(service_contract)
    assert isinstance(service.logger, ConsoleLogger)
    assert service.missing is None


def test_optional_dependency_uses_registration_when_present():
    c = Container()

    class Service:
        def __init__(self, logger):
            self.logger = logger

    service_contract = Contract("Service")
    create_implementation(service_contract, Service, [(LoggerContract, {"optional": True})])

    c.register(ConsoleLogger)
    c.register(Service)
    assert isinstance(c.resolve(service_contract).logger, ConsoleLogger)


def test_resolve_with_dependencies_constructs_unregistered_class():
    c = Container()
    c.register(ConsoleLogger)
    c.register(UpperCaseFormatter)

    class InjectionTest:
        def __init__(self, logger, formatter):
            self.logger = logger
            self.formatter = formatter

    obj = c.resolve_with_dependencies(InjectionTest, [LoggerContract, FormatterContract])
    assert isinstance(obj, InjectionTest)
    assert isinstance(obj.logger, ConsoleLogger)
    assert isinstance(obj.formatter, UpperCaseFormatter)


def test_resolve_with_dependencies_honors_options():
    c = Container()
    c.register(ConsoleLogger)
    c.register(FileLogger)

    class InjectionTest:
        def __init__(self, loggers, formatter):
            self.loggers = loggers
            self.formatter = formatter

    obj = c.resolve_with_dependencies(
        InjectionTest,
        [(LoggerContract, {"multiple": True}), (FormatterContract, {"optional": True})],
    )
    assert [type(x) for x in obj.loggers] == [ConsoleLogger, FileLogger]
    assert obj.formatter is None


def test_resolve_with_dependencies_without_dependencies():
    class NoDeps: ...

    assert isinstance(Container().resolve_with_dependencies(NoDeps), NoDeps)


def test_resolve_dependency_only_class_directly():
    c = Container()
    c.register(ConsoleLogger)

    class Helper:
        def __init__(self, logger):
            self.logger = logger

    create_dependency(Helper, [LoggerContract])
    helper = c.resolve(Helper)
    assert isinstance(helper.logger, ConsoleLogger)


def test_resolve_rejects_non_contract():
    with pytest.raises(TypeError):
        Container().resolve("Logger")  # type: ignore[call-overload]


def test_resolve_all_rejects_non_contract():
    with pytest.raises(TypeError):
        Container().resolve_all(ConsoleLogger)  # type: ignore[arg-type]


def test_register_instance_rejects_non_contract():
    with pytest.raises(TypeError):
        Container().register_instance("Logger", ConsoleLogger())  # type: ignore[arg-type]


def test_register_factory_rejects_non_callable():
    with pytest.raises(TypeError):
        Container().register_factory(LoggerContract, ConsoleLogger())  # type: ignore[arg-type]


def test_constructor_errors_propagate_unchanged():
    class Broken:
        def __init__(self):
            msg = "boom"
            raise ValueError(msg)

    broken_contract = Contract("Broken")
    create_implementation(broken_contract, Broken)

    c = Container()
    c.register(Broken)
    with pytest.raises(ValueError, match="boom"):
        c.resolve(broken_contract)


def test_registration_keeps_dependencies_declared_at_registration_time():
    c = Container()
    c.register(UpperCaseFormatter)

    class Service:
        def __init__(self, *deps):
            self.deps = deps

    service_contract = Contract("Service")
    create_implementation(service_contract, Service, [FormatterContract])
    c.register(Service)

    # Redeclaring the class later does not affect the existing registration
    create_implementation(service_contract, Service, [])

    service = c.resolve(service_contract)
    assert len(service.deps) == 1
    assert isinstance(service.deps[0], UpperCaseFormatter)
