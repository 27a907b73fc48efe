"""Tests for call-target normalization."""

import pytest

from callmap.core.normalizer import DEFAULT_EXTERNAL_OBJECTS, CallTargetNormalizer


@pytest.fixture
def normalizer() -> CallTargetNormalizer:
    return CallTargetNormalizer()


class TestSelfReference:
    """Rule 1: self-reference qualifiers."""

    @pytest.mark.parametrize("raw", ["self.helper", "this.helper", "$this->helper", "cls.helper"])
    def test_self_call_uses_owner(self, normalizer: CallTargetNormalizer, raw: str) -> None:
        assert normalizer.normalize(raw, "A") == "A::helper"

    def test_static_scope(self, normalizer: CallTargetNormalizer) -> None:
        assert normalizer.normalize("static::create", "Model") == "Model::create"

    def test_self_call_outside_class_is_ignored(self, normalizer: CallTargetNormalizer) -> None:
        assert normalizer.normalize("this.helper", None) is None

    def test_longer_chain_drops_qualifier(self, normalizer: CallTargetNormalizer) -> None:
        """``this.repo.save`` is a call on the ``repo`` member."""
        assert normalizer.normalize("this.repo.save", "A") == "repo::save"
        assert normalizer.normalize("$this->repo->save", "A") == "repo::save"

    def test_longer_chain_on_external_member(self, normalizer: CallTargetNormalizer) -> None:
        assert normalizer.normalize("self.logger.info", "A") is None


class TestExternalObjects:
    """Rule 2: deny-listed objects."""

    @pytest.mark.parametrize(
        "raw", ["console.log", "logging.info", "logger.debug", "fs.readFileSync", "JSON.parse"]
    )
    def test_external(self, normalizer: CallTargetNormalizer, raw: str) -> None:
        assert normalizer.normalize(raw, "A") is None

    def test_external_root_of_longer_chain(self, normalizer: CallTargetNormalizer) -> None:
        assert normalizer.normalize("process.env.get", None) is None
        assert normalizer.normalize("os.path.join", None) is None

    def test_custom_deny_list(self) -> None:
        normalizer = CallTargetNormalizer(["db"])

        assert normalizer.normalize("db.query", None) is None
        assert normalizer.normalize("console.log", None) == "console::log"

    def test_default_deny_list(self) -> None:
        assert {"server", "console", "process", "path", "fs"} <= DEFAULT_EXTERNAL_OBJECTS


class TestMemberCalls:
    """Rule 3: ``left.right`` becomes ``left::right``."""

    def test_dotted(self, normalizer: CallTargetNormalizer) -> None:
        assert normalizer.normalize("order.save", None) == "order::save"

    def test_last_two_segments(self, normalizer: CallTargetNormalizer) -> None:
        assert normalizer.normalize("app.services.mailer.send", None) == "mailer::send"

    def test_php_variable_and_optional_chaining(self, normalizer: CallTargetNormalizer) -> None:
        assert normalizer.normalize("$repo->save", None) == "repo::save"
        assert normalizer.normalize("user?.profile?.load", None) == "profile::load"


class TestPassThrough:
    """Rule 4: bare and already-qualified calls."""

    def test_bare(self, normalizer: CallTargetNormalizer) -> None:
        assert normalizer.normalize("helper", "A") == "helper"

    def test_static_call(self, normalizer: CallTargetNormalizer) -> None:
        assert normalizer.normalize("Foo::bar", "A") == "Foo::bar"
