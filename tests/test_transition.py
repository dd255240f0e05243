"""Tests for the Transition Controller."""
import pytest

from rv.config import ConfigParseError, ProfileNotFoundError, get_transform
from rv.engine import Directive, TransitionController
from rv.store import ActivationRecord, ActivationStore


PROJECT_TOML = """\
SHARED = "project"

[dev]
API_URL = "http://localhost"
DEBUG = "1"

[work.staging]
API_URL = "https://staging"
my_token = "t"
"""

OTHER_TOML = """\
SHARED = "project"

[main]
OTHER = "yes"
"""


@pytest.fixture
def project(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    (path / "rv.toml").write_text(PROJECT_TOML)
    return path


@pytest.fixture
def other(tmp_path):
    path = tmp_path / "other"
    path.mkdir()
    (path / "rv.toml").write_text(OTHER_TOML)
    return path


@pytest.fixture
def store(tmp_path):
    return ActivationStore(tmp_path / "data" / "metadata.json")


@pytest.fixture
def controller(store):
    return TransitionController(store)


def apply(env, directives):
    """Apply directives to an environment dict like the shell would."""
    for d in directives:
        if d.value is None:
            env.pop(d.key, None)
        else:
            env[d.key] = d.value
    return env


class TestActivate:
    """Tests for activate."""

    def test_creates_pending_record(self, controller, project):
        record = controller.activate(project, "dev")

        assert record == ActivationRecord("dev", None)
        assert controller.record_for(project) == record

    def test_overwrites_record(self, controller, store, project):
        key = controller.directory_key(project)
        store.set(key, ActivationRecord("dev", ["SHARED", "API_URL"]))

        controller.activate(project, "work.staging")

        assert store.get(key) == ActivationRecord("work.staging", None)

    def test_keyed_by_config_path(self, controller, project):
        assert controller.directory_key(project) == str(project / "rv.toml")
        assert controller.directory_key(project / "sub" / "..") == str(project / "rv.toml")


class TestEnter:
    """Tests for enter."""

    def test_no_record(self, controller, store, project):
        diff = controller.enter(project, {})

        assert diff.no_change
        assert len(store) == 0

    def test_no_config(self, controller, store, tmp_path):
        controller.activate(tmp_path, "dev")
        store.dirty = False

        diff = controller.enter(tmp_path, {})

        assert diff.no_change
        assert not store.dirty

    def test_exports_and_records(self, controller, project):
        controller.activate(project, "dev")

        diff = controller.enter(project, {"SHARED": "project"})

        assert diff.directives == [
            Directive.export("API_URL", "http://localhost"),
            Directive.export("DEBUG", "1"),
        ]
        assert controller.record_for(project).exported_keys == ["SHARED", "API_URL", "DEBUG"]

    def test_idempotent(self, controller, project):
        """A second enter with an unchanged env emits nothing."""
        controller.activate(project, "dev")
        env = apply({}, controller.enter(project, {}).directives)

        second = controller.enter(project, env)

        assert second.no_change

    def test_nested_profile(self, controller, project):
        controller.activate(project, "work.staging")

        diff = controller.enter(project, {})

        assert {d.key: d.value for d in diff.directives} == {
            "SHARED": "project",
            "API_URL": "https://staging",
            "my_token": "t",
        }

    def test_profile_switch_picks_up_new_keys(self, controller, project):
        controller.activate(project, "dev")
        env = apply({}, controller.enter(project, {}).directives)

        controller.activate(project, "work.staging")
        diff = controller.enter(project, env)

        assert diff.changed == ["API_URL"]
        assert diff.added == ["my_token"]
        assert controller.record_for(project).exported_keys == ["SHARED", "API_URL", "my_token"]

    def test_edited_config_unsets_dropped_key(self, controller, project):
        controller.activate(project, "dev")
        env = apply({}, controller.enter(project, {}).directives)

        (project / "rv.toml").write_text('[dev]\nAPI_URL = "http://localhost"\n')
        diff = controller.enter(project, env)

        assert sorted(diff.removed) == ["DEBUG", "SHARED"]
        assert controller.record_for(project).exported_keys == ["API_URL"]

    def test_unknown_profile_leaves_store_untouched(self, controller, store, project):
        controller.activate(project, "prod")
        store.dirty = False

        with pytest.raises(ProfileNotFoundError) as exc:
            controller.enter(project, {})

        assert exc.value.segment == "prod"
        assert controller.record_for(project) == ActivationRecord("prod", None)
        assert not store.dirty

    def test_invalid_config(self, controller, project):
        controller.activate(project, "dev")
        (project / "rv.toml").write_text("not = [valid")

        with pytest.raises(ConfigParseError):
            controller.enter(project, {})


class TestExit:
    """Tests for exit."""

    def test_unsets_exported_keys(self, controller, project):
        controller.activate(project, "dev")
        entered = controller.enter(project, {})

        exited = controller.exit(project)

        assert set(exited.removed) == set(entered.exported_keys)
        assert all(d.value is None for d in exited.directives)

    def test_record_kept(self, controller, project):
        controller.activate(project, "dev")
        controller.enter(project, {})

        controller.exit(project)

        assert controller.record_for(project).profile == "dev"

    def test_pending_record(self, controller, project):
        """Nothing to unset before the first resolution."""
        controller.activate(project, "dev")

        assert controller.exit(project).no_change


class TestDeactivate:
    """Tests for deactivate."""

    def test_unsets_and_removes(self, controller, store, project):
        controller.activate(project, "dev")
        controller.enter(project, {})

        diff = controller.deactivate(project)

        assert diff.removed == ["SHARED", "API_URL", "DEBUG"]
        assert controller.record_for(project) is None
        assert len(store) == 0

    def test_pending_record_removed_silently(self, controller, project):
        controller.activate(project, "dev")

        diff = controller.deactivate(project)

        assert diff.no_change
        assert controller.record_for(project) is None

    def test_no_record(self, controller, store, project):
        assert controller.deactivate(project).no_change
        assert not store.dirty


class TestChangeDirectory:
    """Tests for full directory-change events."""

    def test_exit_then_enter(self, controller, project, other):
        controller.activate(project, "dev")
        controller.activate(other, "main")
        env = apply({}, controller.enter(project, {}).directives)

        report = controller.change_directory(project, other, env, check=True)

        assert report.previous_profile == "dev"
        assert report.current_profile == "main"
        assert [d.key for d in report.exited.directives] == ["SHARED", "API_URL", "DEBUG"]
        assert report.entered.directives == [
            Directive.export("SHARED", "project"),
            Directive.export("OTHER", "yes"),
        ]
        assert report.directives == report.exited.directives + report.entered.directives

    def test_shared_key_reexported(self, controller, project, other):
        """A key both directories export with the same value is unset then exported."""
        controller.activate(project, "dev")
        controller.activate(other, "main")
        env = apply({}, controller.enter(project, {}).directives)

        report = controller.change_directory(project, other, env, check=True)
        env = apply(env, report.directives)

        assert env == {"SHARED": "project", "OTHER": "yes"}

    def test_without_check_only_enters(self, controller, project, other):
        controller.activate(project, "dev")
        controller.activate(other, "main")
        env = apply({}, controller.enter(project, {}).directives)

        report = controller.change_directory(project, other, env, check=False)

        assert report.exited.no_change
        assert report.previous_profile == ""
        assert [d.key for d in report.entered.directives] == ["OTHER"]

    def test_leaving_to_unmanaged_directory(self, controller, project, tmp_path):
        controller.activate(project, "dev")
        env = apply({"HOME": "/home/me"}, controller.enter(project, {}).directives)

        report = controller.change_directory(project, tmp_path, env, check=True)
        env = apply(env, report.directives)

        assert env == {"HOME": "/home/me"}
        assert report.entered.no_change
        assert controller.record_for(project).exported_keys == ["SHARED", "API_URL", "DEBUG"]

    def test_reentry_keeps_key_dropped_while_away(self, controller, project, other):
        """A key removed from rv.toml while away was already unset on exit."""
        controller.activate(project, "dev")
        controller.activate(other, "main")
        env = apply({}, controller.enter(project, {}).directives)
        env = apply(env, controller.change_directory(project, other, env, check=True).directives)

        (project / "rv.toml").write_text('SHARED = "project"\n\n[dev]\nAPI_URL = "http://localhost"\n')
        env["DEBUG"] = "mine"
        report = controller.change_directory(other, project, env, check=True)
        env = apply(env, report.directives)

        assert Directive.unset("DEBUG") not in report.directives
        assert report.entered.removed == []
        assert env == {"SHARED": "project", "API_URL": "http://localhost", "DEBUG": "mine"}
        assert controller.record_for(project).exported_keys == ["SHARED", "API_URL"]

    def test_recheck_unsets_key_dropped_in_place(self, controller, project):
        """Without a directory change the dropped key is still owned."""
        controller.activate(project, "dev")
        env = apply({}, controller.enter(project, {}).directives)

        (project / "rv.toml").write_text('SHARED = "project"\n\n[dev]\nAPI_URL = "http://localhost"\n')
        report = controller.change_directory(project, project, env, check=False)

        assert report.directives == [Directive.unset("DEBUG")]

    def test_no_previous(self, controller, project):
        controller.activate(project, "dev")

        report = controller.change_directory(None, project, {}, check=True)

        assert report.exited.no_change
        assert len(report.entered.directives) == 3

    def test_error_in_enter_propagates(self, controller, project, other):
        controller.activate(project, "dev")
        controller.enter(project, {})
        controller.activate(other, "missing")

        with pytest.raises(ProfileNotFoundError):
            controller.change_directory(project, other, {}, check=True)


class TestResolve:
    """Tests for read-only resolution used by list/get."""

    def test_recorded_profile(self, controller, project):
        controller.activate(project, "dev")

        assert controller.resolve(project) == {
            "SHARED": "project",
            "API_URL": "http://localhost",
            "DEBUG": "1",
        }

    def test_override_profile(self, controller, store, project):
        """An override works without a record and saves nothing."""
        variables = controller.resolve(project, profile="work.staging", transform=get_transform("upper"))

        assert variables == {"SHARED": "project", "API_URL": "https://staging", "MY_TOKEN": "t"}
        assert len(store) == 0

    def test_no_record(self, controller, project):
        assert controller.resolve(project) is None

    def test_no_config(self, controller, tmp_path):
        assert controller.resolve(tmp_path, profile="dev") is None

    def test_custom_loader(self, store):
        """The tree loader is injectable."""
        from rv.config import build_tree

        controller = TransitionController(store, loader=lambda d: build_tree({"p": {"A": "1"}}))
        controller.activate("/virtual", "p")

        diff = controller.enter("/virtual", {})

        assert diff.directives == [Directive.export("A", "1")]
