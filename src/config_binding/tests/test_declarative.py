import typing

import pytest

from ..declarative import AnnotationFieldExtractor, Setting, find_setting, handle_meta
from ..exceptions import InvalidDeclarationError
from ..mapper import ObjectMapperFactory
from ..types import TypeDescriptor
from .testing import PlainConfigurationNode


class Legacy:
    timeout: float = 3.0
    retries = 2
    verbose: bool = False

    class Meta:
        settings = {
            "timeout": Setting("timeout-seconds", comment="seconds to wait"),
            "retries": Setting(type=int),
        }


class Overridden:
    value: typing.Annotated[int, Setting("from-annotation")] = 0

    class Meta:
        settings = {
            "value": Setting("from-meta"),
        }


class TestAnnotationFieldExtractor:
    @pytest.fixture
    def extractor(self) -> AnnotationFieldExtractor:
        return AnnotationFieldExtractor()

    def test_annotated(self, extractor):
        class Foo:
            a: typing.Annotated[str, Setting("alpha", comment="the first")] = ""
            b: typing.Annotated[int, "unrelated", Setting()] = 0
            c: int = 0

        declared = {d.name: d for d in extractor.extract_settings(Foo)}

        assert set(declared) == {"a", "b"}
        assert declared["a"].setting == Setting("alpha", comment="the first")
        assert declared["a"].type == TypeDescriptor.of(str)
        assert declared["b"].type == TypeDescriptor.of(int)

    def test_only_own_declarations(self, extractor):
        class Foo:
            a: typing.Annotated[str, Setting()] = ""

        class Bar(Foo):
            b: typing.Annotated[str, Setting()] = ""

        assert [d.name for d in extractor.extract_settings(Bar)] == ["b"]

    def test_meta_table(self, extractor):
        declared = {d.name: d for d in extractor.extract_settings(Legacy)}

        assert set(declared) == {"timeout", "retries"}
        assert declared["timeout"].type == TypeDescriptor.of(float)
        assert declared["timeout"].setting.path == "timeout-seconds"
        assert declared["retries"].type == TypeDescriptor.of(int)

    def test_meta_takes_precedence(self, extractor):
        (declared,) = extractor.extract_settings(Overridden)
        assert declared.setting.path == "from-meta"

    def test_meta_without_type(self, extractor):
        class Foo:
            untyped = 1

            class Meta:
                settings = {"untyped": Setting()}

        with pytest.raises(InvalidDeclarationError):
            extractor.extract_settings(Foo)

    def test_unresolvable_annotation(self, extractor):
        class Foo:
            a: "typing.Annotated[Missing, Setting()]"  # type: ignore  # noqa: F821

        with pytest.raises(InvalidDeclarationError):
            extractor.extract_settings(Foo)

    def test_string_annotation(self, extractor):
        class Foo:
            a: "typing.Annotated[int, Setting('alpha')]" = 0

        (declared,) = extractor.extract_settings(Foo)
        assert declared.type == TypeDescriptor.of(int)
        assert declared.setting.path == "alpha"


def test_handle_meta():
    class Meta:
        settings = {"a": Setting()}

    assert handle_meta(object, Meta).settings == {"a": Setting()}
    assert handle_meta(object, None).settings == {}


def test_handle_meta_invalid():
    class NotAMapping:
        settings = [Setting()]

    class NotASetting:
        settings = {"a": "a"}

    with pytest.raises(InvalidDeclarationError):
        handle_meta(object, NotAMapping)
    with pytest.raises(InvalidDeclarationError):
        handle_meta(object, NotASetting)


def test_find_setting():
    assert find_setting(int) is None
    assert find_setting(typing.Annotated[int, "x"]) is None
    assert find_setting(typing.Annotated[int, Setting("a")]) == Setting("a")


def test_meta_table_round_trip():
    mapper = ObjectMapperFactory().get_mapper(Legacy)
    node = PlainConfigurationNode.root({"timeout-seconds": "1.5"})
    legacy = mapper.bind_to_new().populate(node)

    assert legacy.timeout == 1.5
    assert legacy.retries == 2
    assert node.get_value() == {"timeout-seconds": "1.5", "retries": 2}
