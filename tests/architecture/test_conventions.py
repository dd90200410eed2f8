"""
Convention Enforcement Tests.

Permanent tests that catch anti-patterns which import-based layer rules
cannot detect: frozen value objects, immutable collections, silent
exception swallowing, and interface contracts.
"""

import ast
import inspect
from pathlib import Path

SRC_ROOT = Path(__file__).parent.parent.parent / "src" / "aecflow"

# Documented exceptions to the frozen dataclass rule
MUTABLE_DATACLASS_ALLOWLIST = {"AEC"}


def _dataclass_info(filepath: Path) -> list[tuple[ast.ClassDef, bool]]:
    """Parse a file and return (class_node, is_frozen) for each @dataclass."""
    tree = ast.parse(filepath.read_text())
    results = []

    for node in ast.walk(tree):
        if not isinstance(node, ast.ClassDef):
            continue
        for decorator in node.decorator_list:
            if isinstance(decorator, ast.Name) and decorator.id == "dataclass":
                results.append((node, False))
            elif (
                isinstance(decorator, ast.Call)
                and isinstance(decorator.func, ast.Name)
                and decorator.func.id == "dataclass"
            ):
                is_frozen = any(
                    kw.arg == "frozen"
                    and isinstance(kw.value, ast.Constant)
                    and kw.value.value is True
                    for kw in decorator.keywords
                )
                results.append((node, is_frozen))
    return results


class TestFrozenDataclassConvention:
    """Domain value objects must be frozen; only the aggregate is mutable."""

    def test_domain_models_are_frozen(self):
        violations = [
            node.name
            for node, is_frozen in _dataclass_info(SRC_ROOT / "domain" / "models.py")
            if node.name not in MUTABLE_DATACLASS_ALLOWLIST and not is_frozen
        ]

        assert not violations, (
            f"Domain dataclasses must be frozen. Violations: {violations}. "
            f"If mutable is intentional, add to MUTABLE_DATACLASS_ALLOWLIST."
        )

    def test_aggregate_is_the_only_mutable_model(self):
        mutable = {
            node.name
            for node, is_frozen in _dataclass_info(SRC_ROOT / "domain" / "models.py")
            if not is_frozen
        }
        assert mutable == MUTABLE_DATACLASS_ALLOWLIST


class TestImmutableCollections:
    """Frozen domain model fields should use tuple, not list."""

    def test_frozen_models_use_tuples_not_lists(self):
        models_file = SRC_ROOT / "domain" / "models.py"
        source = models_file.read_text()
        violations = []

        for node, is_frozen in _dataclass_info(models_file):
            if not is_frozen:
                continue
            for item in node.body:
                if isinstance(item, ast.AnnAssign):
                    annotation = ast.get_source_segment(source, item.annotation) or ""
                    if "list[" in annotation.lower():
                        target = getattr(item.target, "id", "?")
                        violations.append(f"{node.name}.{target}")

        assert not violations, (
            "Frozen dataclass fields should use tuple, not list:\n"
            + "\n".join(f"  - {v}" for v in violations)
        )


class TestNoSilentExceptionSwallowing:
    """No bare 'except:' and no 'except ...: pass' in src/."""

    def test_no_bare_except_or_pass(self):
        violations = []

        for py_file in SRC_ROOT.rglob("*.py"):
            source = py_file.read_text()
            for node in ast.walk(ast.parse(source)):
                if not isinstance(node, ast.ExceptHandler):
                    continue
                rel_path = py_file.relative_to(SRC_ROOT.parent.parent)
                if node.type is None:
                    violations.append(f"{rel_path}:{node.lineno}: bare except")
                    continue
                if len(node.body) == 1 and isinstance(node.body[0], ast.Pass):
                    handler_type = ast.get_source_segment(source, node.type) or ""
                    violations.append(
                        f"{rel_path}:{node.lineno}: except {handler_type}: pass"
                    )

        assert not violations, "Silent exception swallowing found:\n" + "\n".join(
            f"  - {v}" for v in violations
        )


class TestInterfaceConventions:
    """Interface naming and contract conventions."""

    def test_all_ports_end_with_interface(self):
        from aecflow.domain import interfaces

        abstract_classes = [
            name
            for name, obj in inspect.getmembers(interfaces, inspect.isclass)
            if inspect.isabstract(obj) and not name.startswith("_")
        ]

        violations = [
            name for name in abstract_classes if not name.endswith("Interface")
        ]
        assert abstract_classes
        assert not violations, (
            f"Abstract classes should end with 'Interface': {violations}"
        )

    def test_all_port_methods_are_async_and_abstract(self):
        """Ports are I/O boundaries: every public method is an abstract coroutine."""
        from aecflow.domain import interfaces

        violations = []
        for name, cls in inspect.getmembers(interfaces, inspect.isclass):
            if not inspect.isabstract(cls) or not name.endswith("Interface"):
                continue
            for method_name, method in inspect.getmembers(
                cls, predicate=inspect.isfunction
            ):
                if method_name.startswith("_"):
                    continue
                if not getattr(method, "__isabstractmethod__", False):
                    violations.append(f"{name}.{method_name} is not abstract")
                if not inspect.iscoroutinefunction(method):
                    violations.append(f"{name}.{method_name} is not async")

        assert not violations, f"Port contract violations: {violations}"

    def test_implementations_satisfy_interfaces(self):
        """All adapters implement every abstract method of their port."""
        from aecflow.domain.interfaces import (
            AECRepositoryInterface,
            StepRunnerInterface,
        )
        from aecflow.infrastructure.persistence import (
            FilesystemAECRepository,
            InMemoryAECRepository,
        )
        from aecflow.infrastructure.runner import (
            QueuedStepRunner,
            RecordingStepRunner,
        )

        pairs = [
            (AECRepositoryInterface, [FilesystemAECRepository, InMemoryAECRepository]),
            (StepRunnerInterface, [QueuedStepRunner, RecordingStepRunner]),
        ]
        for port, implementations in pairs:
            for impl_cls in implementations:
                assert issubclass(impl_cls, port)
                assert not inspect.isabstract(impl_cls), (
                    f"{impl_cls.__name__} leaves abstract methods unimplemented"
                )
