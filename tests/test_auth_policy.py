import pytest

from flyte.auth_policy import (
    PathPolicy,
    PolicyClaims,
    PolicyError,
    load_path_policies,
    resolve_template,
    resolve_templates,
)

TOKEN_CLAIMS = {
    "foo": "bar",
    "user": "Mr X",
    "superuser": True,
    "role": "admin",
    "accesslevel": 1,
    "groups": ["dev", "role"],
    "groups2": ("dev2", "role2"),
    "somebools": [True, False, True],
    "willgetignored": [1.2, 1.3, 1.4],
}

DYNAMIC_TOKEN_CLAIMS = {
    **TOKEN_CLAIMS,
    "pack": "bamboo",
    "namespace": "com.some.namespace",
}


@pytest.mark.parametrize(
    "claims",
    [
        {"groups": ["foo", "bar"], "role": ["admin"]},
        {"groups": ["foo", "bar", "dev"]},
        {"groups2": ["dev2"]},
        {"role": ["admin"]},
        {"superuser": ["true"], "groups": ["blah", "blah blah"]},
        {"accesslevel": ["1"]},
        {},
    ],
)
def test_claims_fulfilled(claims):
    assert PolicyClaims(claims).fulfilled(TOKEN_CLAIMS, None) is True


def test_empty_claims_fulfilled_by_any_token():
    assert PolicyClaims().fulfilled({}, None) is True


@pytest.mark.parametrize(
    "claims",
    [
        {"groups": ["foo", "bar"], "role": ["superuser"]},
        {"groups": ["foo", "bar"]},
        {"somebools": ["false"]},
        {"superuser": ["false"]},
        {"accesslevel": ["2"]},
        {"willgetignored": ["1.2"]},
        {"missing": ["anything"]},
    ],
)
def test_claims_not_fulfilled(claims):
    assert PolicyClaims(claims).fulfilled(TOKEN_CLAIMS, None) is False


@pytest.mark.parametrize(
    "claims",
    [
        {"pack": [":pack"]},
        {"namespace": [":namespace"]},
        {":accesscontrol": ["dev", "ssp"]},
    ],
)
def test_dynamic_claims_fulfilled(claims):
    placeholders = {"pack": "bamboo", "namespace": "com.some.namespace", "accesscontrol": "groups"}
    assert PolicyClaims(claims).fulfilled(DYNAMIC_TOKEN_CLAIMS, placeholders) is True


@pytest.mark.parametrize(
    "claims",
    [
        {"pack": [":pack"]},
        {"namespace": [":namespace"]},
        {":accesscontrol": ["dev", "ssp"]},
    ],
)
def test_dynamic_claims_not_fulfilled(claims):
    placeholders = {"pack": "github", "accesscontrol": "groups2"}
    assert PolicyClaims(claims).fulfilled(DYNAMIC_TOKEN_CLAIMS, placeholders) is False


def test_resolve_template():
    assert resolve_template(":pack", {"pack": "bamboo"}) == "bamboo"
    assert resolve_template(":missing", {"pack": "bamboo"}) == ""
    assert resolve_template("plain", {"plain": "x"}) == "plain"


def test_resolve_templates():
    assert resolve_templates([":a", "b", ":c"], {"a": "1", "c": "3"}) == ["1", "b", "3"]


def test_load_path_policies(tmp_path):
    policy_file = tmp_path / "policy.yaml"
    policy_file.write_text(
        "- path: /swagger\n"
        "  methods: [GET]\n"
        "  claims:\n"
        "    groups: [dev]\n"
        "- path: /v1/packs/:packName\n"
        "  claims:\n"
        "    pack: [':packName']\n"
        "    superuser: [true]\n"
        "- path: /open\n"
    )
    assert load_path_policies(policy_file) == [
        PathPolicy("/swagger", ["GET"], PolicyClaims({"groups": ["dev"]})),
        PathPolicy(
            "/v1/packs/:packName",
            None,
            PolicyClaims({"pack": [":packName"], "superuser": ["true"]}),
        ),
        PathPolicy("/open", None, PolicyClaims()),
    ]


def test_load_empty_policy_file(tmp_path):
    policy_file = tmp_path / "policy.yaml"
    policy_file.write_text("")
    assert load_path_policies(policy_file) == []


def test_load_missing_policy_file(tmp_path):
    with pytest.raises(PolicyError, match="failed to load auth policy file"):
        load_path_policies(tmp_path / "nope.yaml")


@pytest.mark.parametrize("content", ["path: /x\n", "- [unclosed\n", "- path: /x\n  claims: [a, b]\n"])
def test_load_invalid_policy_file(tmp_path, content):
    policy_file = tmp_path / "policy.yaml"
    policy_file.write_text(content)
    with pytest.raises(PolicyError, match="failed to deserialise auth policy file"):
        load_path_policies(policy_file)