from typing import Optional, Sequence

import libcst as cst

MODULE_SCOPE_NAME = "<module>"
LAMBDA_NAME = "<lambda>"


def path_to_logical_fqn(rel_path_str: str) -> str:
    """
    Converts a relative file path string into a Python Fully Qualified Name (FQN).

    - 'src/my_pkg/module.py' -> 'src.my_pkg.module'
    - 'my_pkg/__init__.py' -> 'my_pkg'
    """
    # Normalize path separators to dots
    fqn = rel_path_str.replace("/", ".")

    # Strip .py extension
    if fqn.endswith(".py"):
        fqn = fqn[:-3]

    # Handle __init__ files (e.g., 'pkg.__init__' -> 'pkg')
    if fqn == "__init__":
        return ""
    if fqn.endswith(".__init__"):
        fqn = fqn[: -len(".__init__")]

    return fqn


def logical_module_name(rel_path: str, source_roots: Sequence[str]) -> str:
    """
    Computes the importable module name of a file, relative to the most
    specific source root that contains it.

    - ('src/bank/models.py', ['src', '.']) -> 'bank.models'
    - ('tools/run.py', ['src', '.']) -> 'tools.run'
    """
    best = ""
    for root in source_roots:
        prefix = root.strip("/")
        if prefix in ("", "."):
            continue
        if rel_path.startswith(prefix + "/") and len(prefix) > len(best):
            best = prefix
    logical_rel_path = rel_path[len(best) + 1 :] if best else rel_path
    return path_to_logical_fqn(logical_rel_path)


def package_of(module_fqn: str, is_init_file: bool) -> str:
    if is_init_file:
        return module_fqn
    if "." in module_fqn:
        return module_fqn.rsplit(".", 1)[0]
    return ""


def resolve_relative_name(name: str, package: str) -> str:
    """
    Turns a relative dotted name (as produced for `from .x import y`) into an
    absolute one, given the package of the importing module.

    - ('.models.Account', 'bank') -> 'bank.models.Account'
    - ('..core.Base', 'bank.api') -> 'bank.core.Base'
    """
    if not name.startswith("."):
        return name

    level = len(name) - len(name.lstrip("."))
    remainder = name[level:]
    parts = package.split(".") if package else []
    # One dot is the current package; each extra dot climbs one level.
    if level > 1:
        parts = parts[: max(len(parts) - (level - 1), 0)]

    base = ".".join(parts)
    if base and remainder:
        return f"{base}.{remainder}"
    return base or remainder


def join_name(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def final_name(node: cst.CSTNode) -> Optional[str]:
    """
    The last identifier of a (possibly dotted or called) expression:
    `mutatedby` for `mutatedby`, `markers.mutatedby` and `mutatedby(...)`.
    """
    if isinstance(node, cst.Name):
        return node.value
    if isinstance(node, cst.Attribute):
        return node.attr.value
    if isinstance(node, cst.Call):
        return final_name(node.func)
    return None


def iter_params(params: cst.Parameters):
    yield from params.posonly_params
    yield from params.params
    if isinstance(params.star_arg, cst.Param):
        yield params.star_arg
    yield from params.kwonly_params
    if params.star_kwarg is not None:
        yield params.star_kwarg
