import pytest

from activation import metrics
from activation.config.schemas.modules import ModulesConfig
from activation.events import subscribe
from activation.modules import (
    CycleDetectedError,
    EmptyCandidatePoolError,
    EventListener,
    IndexedMetadataSource,
    InvalidExclusionError,
    ModuleSelector,
    ResolutionReport,
    ResolutionState,
    build_selector,
)


class ListSource:
    def __init__(self, *names):
        self.names = list(names)

    def list_candidates(self):
        return list(self.names)


class Recorder:
    def __init__(self, log, tag):
        self.log = log
        self.tag = tag

    def on_resolved(self, modules, exclusions):
        self.log.append((self.tag, list(modules), set(exclusions)))


class Reject:
    def __init__(self, *names):
        self.names = set(names)

    def match(self, candidates, metadata):
        return [c not in self.names for c in candidates]


def _selector(*names, index=None, **kw):
    return ModuleSelector(
        ListSource(*names),
        metadata_factory=lambda: IndexedMetadataSource.from_mapping(
            index or {}
        ),
        loadable=kw.pop("loadable", lambda name: False),
        **kw,
    )


def test_full_pipeline_order_exclude_filter_notify():
    log = []
    sel = _selector(
        "web", "db", "cache", "db", "debug",
        index={"web": {"after": ["cache"]}, "db": {"order": 0}},
        filters=[Reject("debug")],
        listeners=[Recorder(log, "first"), Recorder(log, "second")],
        config=ModulesConfig(exclude=["metrics"]),
    )
    got = sel.select(exclude_names=["cache"])
    # cache excluded → web's constraint dropped; db has the lowest hint
    assert got == ["db", "web"]
    assert sel.state is ResolutionState.DONE
    assert [t for t, _, _ in log] == ["first", "second"]
    assert log[0][1] == ["db", "web"]
    assert log[0][2] == {"cache", "metrics"}


def test_duplicates_removed():
    assert _selector("b", "a", "b", "a").select() == ["a", "b"]


def test_empty_pool_fails():
    sel = _selector()
    with pytest.raises(EmptyCandidatePoolError):
        sel.select()
    assert sel.state is ResolutionState.IDLE


def test_invalid_exclusion_halts_before_ordering():
    calls = []

    def factory():
        calls.append(1)
        return IndexedMetadataSource.from_mapping({})

    sel = ModuleSelector(
        ListSource("X", "Y"),
        metadata_factory=factory,
        loadable=lambda name: name == "Q",
    )
    with pytest.raises(InvalidExclusionError) as ei:
        sel.select(exclude_names=["Q"])
    assert ei.value.invalid == ["Q"]
    assert calls == []
    assert sel.state is ResolutionState.DEDUPLICATED


def test_unloadable_exclusion_ignored():
    sel = _selector("X", "Y", loadable=lambda name: False)
    assert sel.select(exclude_names=["Q"]) == ["X", "Y"]


def test_real_module_exclusion_uses_import_system():
    import json

    sel = ModuleSelector(ListSource("X", "Y"))
    with pytest.raises(InvalidExclusionError):
        sel.select(exclude=[json])
    assert sel.select(exclude_names=["not_a_module_sel_zz"]) == ["X", "Y"]


def test_cycle_fails_with_no_output_and_no_notification():
    log = []
    sel = _selector(
        "A", "B",
        index={"A": {"after": ["B"]}, "B": {"after": ["A"]}},
        listeners=[Recorder(log, "l")],
    )
    with pytest.raises(CycleDetectedError):
        sel.select()
    assert log == []
    assert sel.state is ResolutionState.EXCLUSIONS_APPLIED


def test_listener_failure_propagates():
    class Boom:
        def on_resolved(self, modules, exclusions):
            raise RuntimeError("listener down")

    log = []
    sel = _selector("a", listeners=[Boom(), Recorder(log, "after")])
    with pytest.raises(RuntimeError):
        sel.select()
    assert log == []
    assert sel.state is ResolutionState.FILTERED


def test_filter_failure_propagates():
    class Boom:
        def match(self, candidates, metadata):
            raise OSError("lookup failed")

    sel = _selector("a", filters=[Boom()])
    with pytest.raises(OSError):
        sel.select()
    assert sel.state is ResolutionState.ORDERED


def test_disabled_returns_nothing_without_discovery():
    class Exploding:
        def list_candidates(self):
            raise AssertionError("must not be called")

    sel = ModuleSelector(Exploding(), config=ModulesConfig(enabled=False))
    assert sel.select() == []


def test_metadata_factory_called_once_per_pass():
    calls = []

    def factory():
        calls.append(1)
        return IndexedMetadataSource.from_mapping({})

    sel = ModuleSelector(ListSource("a", "b"), metadata_factory=factory)
    sel.select()
    sel.select()
    assert len(calls) == 2


def test_events_and_metrics_on_success_and_failure():
    metrics.reset_for_tests()
    seen = []
    unsub = subscribe(lambda name, payload: seen.append((name, payload)))
    try:
        report = ResolutionReport()
        _selector("b", "a", listeners=[EventListener(), report]).select(
            exclude_names=["zz"]
        )
        with pytest.raises(CycleDetectedError):
            _selector(
                "A", "B", index={"A": {"before": ["B"]}, "B": {"before": ["A"]}}
            ).select()
    finally:
        unsub()
    names = [n for n, _ in seen]
    assert names == [
        "ResolutionStarted",
        "ModulesResolved",
        "ResolutionStarted",
        "ResolutionFailed",
    ]
    assert seen[1][1]["modules"] == ["a", "b"]
    assert seen[1][1]["exclusions"] == ["zz"]
    assert seen[3][1]["error_type"] == "cycle-detected"
    assert seen[3][1]["state"] == "exclusions_applied"
    assert report.as_dict()["modules"] == ["a", "b"]
    counters = metrics.snapshot()["counters"]
    assert counters["resolution_total{status=ok}"] == 1
    assert counters["resolution_total{status=error}"] == 1
    assert counters["resolution_failures_total{error_type=cycle-detected}"] == 1


def test_same_inputs_same_output():
    index = {"m": {"order": 2}, "a": {"after": ["z"]}}
    first = _selector("z", "m", "a", index=index).select()
    second = _selector("a", "m", "z", index=index).select()
    assert first == second == ["m", "z", "a"]


def test_build_selector_from_registry_and_config(make_repo, config_dir):
    (config_dir / "base.yaml").write_text(
        "schema_version: 1\nmodules: {exclude: [zz_app.debug]}\n",
        encoding="utf-8",
    )
    repo = make_repo(
        {
            "core": ["zz_app.db", "zz_app.web"],
            "extras": ["zz_app.search", "zz_app.debug", "zz_app.web"],
        },
        index={
            "zz_app.web": {"after": ["zz_app.search"]},
            "zz_app.search": {"requires": ["zz_missing_client_lib"]},
            "zz_app.db": {"order": 10, "requires": ["json"]},
        },
    )
    report = ResolutionReport()
    sel = build_selector(repo, listeners=[report])
    assert sel.select() == ["zz_app.db", "zz_app.web"]
    assert report.as_dict() == {
        "modules": ["zz_app.db", "zz_app.web"],
        "exclusions": ["zz_app.debug"],
        "resolutions": 1,
    }


def test_build_selector_empty_registry(tmp_path, config_dir):
    with pytest.raises(EmptyCandidatePoolError):
        build_selector(tmp_path).select()


def test_exclusion_under_broken_package_is_tolerated(tmp_path, monkeypatch):
    pkg = tmp_path / "zz_broken_sel"
    pkg.mkdir()
    (pkg / "__init__.py").write_text(
        "raise RuntimeError('boom at import')\n", encoding="utf-8"
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    sel = ModuleSelector(ListSource("X", "Y"))
    assert sel.select(exclude_names=["zz_broken_sel.child"]) == ["X", "Y"]
    assert sel.state is ResolutionState.DONE


def test_built_selectors_do_not_share_state(make_repo, config_dir):
    repo = make_repo({"core": ["zz_iso.a", "zz_iso.b"]})
    first, second = build_selector(repo), build_selector(repo)
    assert first is not second
    with pytest.raises(InvalidExclusionError):
        first.select(exclude_names=["json"])
    assert second.select() == ["zz_iso.a", "zz_iso.b"]
    assert first.state is ResolutionState.DEDUPLICATED
    assert second.state is ResolutionState.DONE
