import textwrap

import pytest

from activation.modules import MetadataReadError, SourceInspector


def _write_pkg(root, pkg, modules):
    d = root / pkg
    d.mkdir()
    (d / "__init__.py").write_text("", encoding="utf-8")
    for name, body in modules.items():
        (d / f"{name}.py").write_text(textwrap.dedent(body), encoding="utf-8")


def test_reads_constants_without_importing(tmp_path, monkeypatch):
    _write_pkg(
        tmp_path,
        "insp_pkg_a",
        {
            "cache": """
                raise RuntimeError("must not be imported")
                ACTIVATION_ORDER = -10
                ACTIVATE_BEFORE = ["insp_pkg_a.web"]
                ACTIVATE_AFTER: tuple = ("insp_pkg_a.db",)
                REQUIRES = ["redis"]
                lowercase = 1
                COMPUTED = compute()
            """,
        },
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    attrs = SourceInspector().inspect("insp_pkg_a.cache")
    assert attrs == {
        "order": -10,
        "before": ["insp_pkg_a.web"],
        "after": ("insp_pkg_a.db",),
        "requires": ["redis"],
    }


def test_unlocatable_module_has_no_metadata():
    assert SourceInspector().inspect("no_such_pkg_for_inspector.mod") == {}


def test_non_literal_known_constant_is_read_error():
    with pytest.raises(MetadataReadError):
        SourceInspector().inspect_source(
            "m", "ACTIVATE_AFTER = build_list()\n"
        )


def test_syntax_error_is_read_error(tmp_path, monkeypatch):
    _write_pkg(tmp_path, "insp_pkg_b", {"broken": "ACTIVATION_ORDER = (\n"})
    monkeypatch.syspath_prepend(str(tmp_path))
    with pytest.raises(MetadataReadError) as ei:
        SourceInspector().inspect("insp_pkg_b.broken")
    assert isinstance(ei.value.__cause__, SyntaxError)


def test_custom_spec_finder_is_used():
    calls = []

    def finder(name):
        calls.append(name)
        return None

    assert SourceInspector(finder).inspect("anything") == {}
    assert calls == ["anything"]


def test_parent_failing_at_import_has_no_metadata(tmp_path, monkeypatch):
    _write_pkg(tmp_path, "insp_pkg_c", {"mod": "ACTIVATION_ORDER = 1\n"})
    (tmp_path / "insp_pkg_c" / "__init__.py").write_text(
        "raise RuntimeError('boom at import')\n", encoding="utf-8"
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    assert SourceInspector().locate("insp_pkg_c.mod") is None
    assert SourceInspector().inspect("insp_pkg_c.mod") == {}
