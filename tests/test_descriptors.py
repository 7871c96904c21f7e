import dataclasses

import pytest
from declarest.core.descriptors import (
    BodyParam,
    HeaderParam,
    MethodDescriptor,
    MethodVerb,
    PathParam,
    QueryParam,
    ReturnKind,
)
from declarest.core.errors import ConfigurationError


def test_valid_descriptor_derives_has_body():
    d = MethodDescriptor(
        name="create_issue",
        verb=MethodVerb.POST,
        path_template="/repos/{owner}/{repo}/issues",
        bindings=(PathParam("owner"), PathParam("repo"), BodyParam()),
    )
    assert d.has_body is True
    assert d.placeholders == frozenset({"owner", "repo"})
    assert d.arg_count == 3
    assert d.return_kind is ReturnKind.TYPED_BODY


def test_verb_and_return_kind_strings_are_coerced():
    d = MethodDescriptor(
        name="ping", verb="post", path_template="/ping", return_kind="no_body"
    )
    assert d.verb is MethodVerb.POST
    assert d.return_kind is ReturnKind.NO_BODY
    assert d.has_body is False


def test_unknown_verb_is_configuration_error():
    with pytest.raises(ConfigurationError) as exc:
        MethodDescriptor(name="x", verb="FETCH", path_template="/x")
    assert exc.value.method_name == "x"


@pytest.mark.parametrize(
    "template, bindings",
    [
        ("/repos/{owner}", ()),
        ("/repos", (PathParam("owner"),)),
        ("/repos/{owner}", (PathParam("repo"),)),
        ("/repos/{owner}/{repo}", (PathParam("owner"),)),
    ],
)
def test_placeholder_binding_mismatch_rejected(template, bindings):
    with pytest.raises(ConfigurationError):
        MethodDescriptor(
            name="bad", verb=MethodVerb.GET, path_template=template, bindings=bindings
        )


def test_repeated_placeholder_needs_single_binding():
    d = MethodDescriptor(
        name="mirror",
        verb=MethodVerb.GET,
        path_template="/{id}/copy/{id}",
        bindings=(PathParam("id"),),
    )
    assert d.placeholders == frozenset({"id"})


def test_duplicate_path_params_rejected():
    with pytest.raises(ConfigurationError):
        MethodDescriptor(
            name="dup",
            verb=MethodVerb.GET,
            path_template="/{id}",
            bindings=(PathParam("id"), PathParam("id")),
        )


def test_two_body_bindings_rejected():
    with pytest.raises(ConfigurationError) as exc:
        MethodDescriptor(
            name="two_bodies",
            verb=MethodVerb.POST,
            path_template="/things",
            bindings=(BodyParam(), BodyParam()),
        )
    assert "BodyParam" in str(exc.value)


@pytest.mark.parametrize(
    "has_body, bindings",
    [(True, ()), (False, (BodyParam(),))],
)
def test_has_body_must_agree_with_bindings(has_body, bindings):
    with pytest.raises(ConfigurationError):
        MethodDescriptor(
            name="x",
            verb=MethodVerb.POST,
            path_template="/x",
            bindings=bindings,
            has_body=has_body,
        )


def test_arg_names_must_match_binding_count():
    with pytest.raises(ConfigurationError):
        MethodDescriptor(
            name="search",
            verb=MethodVerb.GET,
            path_template="/search",
            bindings=(QueryParam("q"),),
            arg_names=("q", "page"),
        )


def test_duplicate_arg_names_rejected():
    with pytest.raises(ConfigurationError):
        MethodDescriptor(
            name="search",
            verb=MethodVerb.GET,
            path_template="/search",
            bindings=(QueryParam("q"), QueryParam("q")),
            arg_names=("q", "q"),
        )


@pytest.mark.parametrize(
    "template", ["repos", "/repos/{}", "/repos/{owner", "/repos/owner}", "/{{id}}"]
)
def test_malformed_templates_rejected(template):
    with pytest.raises(ConfigurationError):
        MethodDescriptor(name="x", verb=MethodVerb.GET, path_template=template)


def test_unknown_binding_and_missing_names_rejected():
    with pytest.raises(ConfigurationError):
        MethodDescriptor(
            name="x", verb=MethodVerb.GET, path_template="/x", bindings=("q",)
        )
    with pytest.raises(ConfigurationError):
        MethodDescriptor(
            name="x",
            verb=MethodVerb.GET,
            path_template="/x",
            bindings=(HeaderParam(""),),
        )


def test_empty_name_rejected():
    with pytest.raises(ConfigurationError):
        MethodDescriptor(name="", verb=MethodVerb.GET, path_template="/x")


def test_descriptor_is_immutable():
    d = MethodDescriptor(name="x", verb=MethodVerb.GET, path_template="/x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        d.path_template = "/y"  # type: ignore[misc]


def test_bindings_list_is_stored_as_tuple():
    d = MethodDescriptor(
        name="search",
        verb=MethodVerb.GET,
        path_template="/search",
        bindings=[QueryParam("q", optional=True)],  # type: ignore[arg-type]
    )
    assert d.bindings == (QueryParam("q", optional=True),)
