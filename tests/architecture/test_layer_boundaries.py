"""
Architecture boundary enforcement for the layered packages.

debt_kernel/ is the innermost layer and imports none of the outer packages.
debt_engines/ is pure: it may import only kernel domain types, kernel
exceptions, kernel logging and sibling engines.  debt_services/ must not
import debt_batch or debt_config, and debt_batch must not import
debt_config.
"""

import ast
import glob
import importlib
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
PACKAGES = ("debt_kernel", "debt_engines", "debt_services", "debt_batch", "debt_config")


def _python_files(package: str) -> list[str]:
    return sorted(glob.glob(f"{ROOT / package}/**/*.py", recursive=True))


def _extract_imports(filepath: str) -> list[tuple[int, str]]:
    try:
        source = Path(filepath).read_text()
        tree = ast.parse(source, filename=filepath)
    except (SyntaxError, UnicodeDecodeError):
        return []
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _imports_any(module: str, packages: tuple[str, ...]) -> bool:
    return any(module == p or module.startswith(f"{p}.") for p in packages)


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            if _imports_any(module, forbidden):
                found.append(f"  {filepath}:{lineno} imports '{module}'")
    return found


class TestPackagesExist:
    def test_every_layer_has_sources(self):
        for package in PACKAGES:
            assert _python_files(package), f"{package} has no python files"


class TestSourcesParse:
    def test_every_module_is_valid_python(self):
        broken: list[str] = []
        for package in PACKAGES:
            for filepath in _python_files(package):
                try:
                    ast.parse(Path(filepath).read_text(), filename=filepath)
                except SyntaxError as exc:
                    broken.append(f"  {filepath}:{exc.lineno} {exc.msg}")
        assert not broken, "Modules fail to parse:\n" + "\n".join(broken)

    @pytest.mark.parametrize("package", [
        "debt_kernel.domain",
        "debt_kernel.db",
        "debt_kernel.models",
        "debt_kernel.repositories",
        "debt_kernel.services",
        "debt_engines",
        "debt_services",
        "debt_batch",
        "debt_config",
    ])
    def test_public_names_resolve(self, package):
        module = importlib.import_module(package)
        missing = [name for name in module.__all__ if not hasattr(module, name)]
        assert not missing, f"{package}.__all__ lists undefined names: {missing}"


class TestKernelIsInnermost:
    def test_kernel_imports_no_outer_layer(self):
        violations = _violations(
            "debt_kernel", ("debt_engines", "debt_services", "debt_batch", "debt_config"),
        )
        assert not violations, "Kernel must not import outer layers:\n" + "\n".join(violations)


class TestEnginesArePure:
    ALLOWED_INTERNAL = (
        "debt_kernel.domain",
        "debt_kernel.exceptions",
        "debt_kernel.logging_config",
        "debt_engines",
    )
    FORBIDDEN_THIRD_PARTY = ("sqlalchemy", "yaml")

    def test_engines_import_only_domain_types(self):
        violations: list[str] = []
        for filepath in _python_files("debt_engines"):
            for lineno, module in _extract_imports(filepath):
                if not module.startswith("debt_"):
                    continue
                if not _imports_any(module, self.ALLOWED_INTERNAL):
                    violations.append(f"  {filepath}:{lineno} imports '{module}'")
        assert not violations, "Engines import beyond domain types:\n" + "\n".join(violations)

    def test_engines_do_no_io(self):
        violations = _violations("debt_engines", self.FORBIDDEN_THIRD_PARTY)
        assert not violations, "Engines must not touch persistence:\n" + "\n".join(violations)


class TestServicesBoundary:
    def test_services_do_not_import_batch_or_config(self):
        violations = _violations("debt_services", ("debt_batch", "debt_config"))
        assert not violations, "Services import outer layers:\n" + "\n".join(violations)


class TestBatchBoundary:
    def test_batch_does_not_import_config(self):
        violations = _violations("debt_batch", ("debt_config",))
        assert not violations, "Batch imports debt_config:\n" + "\n".join(violations)
