import pytest

from oscal_sdk.components import (
    ControlImplementationSetAdapter,
    ImplementedRequirementImplementationAdapter,
)
from oscal_sdk.extensions import (
    FRAMEWORK_PROP,
    RULE_ID_PROP,
    SKIPPED_RULES_PROPERTY,
    TEST_PARAMETER_CLASS,
    TRESTLE_NAMESPACE,
    Check,
    Parameter,
    Rule,
    RuleSet,
)
from oscal_sdk.rules import Store
from oscal_sdk.settings import (
    FrameworkSource,
    ImplementationSettings,
    RulesNotFoundError,
    Settings,
    apply_to_component,
    by_framework,
    get_framework_short_name,
    new_assessment_activities_settings,
    new_implementation_settings,
    settings_from_implemented_requirement,
)


def _rule_prop(value):
    return {"name": RULE_ID_PROP, "ns": TRESTLE_NAMESPACE, "value": value}


def _implementations():
    return [
        {
            "uuid": "11111111-1111-4111-8111-111111111111",
            "source": "profiles/cis/profile.json",
            "description": "CIS Profile",
            "implemented-requirements": [
                {
                    "uuid": "22222222-2222-4222-8222-222222222222",
                    "control-id": "CIS-2.1",
                    "description": "",
                    "props": [_rule_prop("etcd_cert_file"), _rule_prop("etcd_key_file")],
                    "statements": [
                        {
                            "statement-id": "CIS-2.1_smt",
                            "uuid": "33333333-3333-4333-8333-333333333333",
                            "description": "",
                        }
                    ],
                }
            ],
        },
        {
            "uuid": "44444444-4444-4444-8444-444444444444",
            "source": "profiles/nist/profile.json",
            "description": "NIST Profile",
            "implemented-requirements": [
                {
                    "uuid": "55555555-5555-4555-8555-555555555555",
                    "control-id": "ac-1",
                    "description": "",
                    "props": [_rule_prop("other_rule")],
                }
            ],
        },
    ]


def _prep_settings():
    settings, _ = by_framework("cis", _implementations())
    return settings


# --- factory -----------------------------------------------------------------


@pytest.mark.parametrize(
    "requirement, expected",
    [
        (
            {"props": [_rule_prop("rule-1"), _rule_prop("rule-2")]},
            Settings({"rule-1", "rule-2"}, {}),
        ),
        (
            {
                "props": [_rule_prop("rule-1"), _rule_prop("rule-2")],
                "set-parameters": [{"param-id": "param-1", "values": ["value"]}],
            },
            Settings({"rule-1", "rule-2"}, {"param-1": "value"}),
        ),
        ({}, Settings(set(), {})),
        (
            {"set-parameters": [{"param-id": "param-1", "values": ["value-1", "value-2"]}]},
            Settings(set(), {}),
        ),
    ],
    ids=["MappedRulesFound", "ParametersFound", "NoSettingsFound", "MultipleParameterValues"],
)
def test_settings_from_implemented_requirement(requirement, expected):
    adapter = ImplementedRequirementImplementationAdapter(requirement)
    assert settings_from_implemented_requirement(adapter) == expected


def test_settings_from_implemented_requirement_includes_statements():
    adapter = ImplementedRequirementImplementationAdapter(
        {
            "control-id": "ex-1",
            "statements": [{"statement-id": "ex-1_smt", "props": [_rule_prop("stm-rule")]}],
        }
    )
    assert settings_from_implemented_requirement(adapter).mapped_rules == {"stm-rule"}


_METHOD = {"name": "method", "value": "TEST"}


@pytest.mark.parametrize(
    "activities, expected",
    [
        (
            [
                {"title": "rule-1", "props": [_METHOD]},
                {"title": "rule-2", "props": [_METHOD]},
            ],
            Settings({"rule-1", "rule-2"}, {}),
        ),
        (
            [
                {
                    "title": "rule-1",
                    "props": [
                        {
                            "name": "param-1",
                            "ns": TRESTLE_NAMESPACE,
                            "value": "value",
                            "class": TEST_PARAMETER_CLASS,
                        },
                        _METHOD,
                    ],
                },
                {"title": "rule-2", "props": [_METHOD]},
            ],
            Settings({"rule-1", "rule-2"}, {"param-1": "value"}),
        ),
        (
            [{"title": "Not a Rule"}, {"title": "Also not a Rule"}],
            Settings(set(), {}),
        ),
    ],
    ids=["MappedRulesFound", "ParametersFound", "NoSettingsFound"],
)
def test_new_assessment_activities_settings(activities, expected):
    assert new_assessment_activities_settings(activities) == expected


def test_new_assessment_activities_settings_skips_skipped():
    activities = [
        {
            "title": "rule-1",
            "props": [
                _METHOD,
                {"name": SKIPPED_RULES_PROPERTY, "ns": TRESTLE_NAMESPACE, "value": "true"},
            ],
        },
        {"title": "rule-2", "props": [_METHOD]},
    ]
    assert new_assessment_activities_settings(activities).mapped_rules == {"rule-2"}


def test_new_implementation_settings_top_level_parameters():
    adapter = ControlImplementationSetAdapter(
        {
            "set-parameters": [{"param-id": "p", "values": ["v"]}],
            "implemented-requirements": [
                {"control-id": "ex-1", "props": [_rule_prop("r")]},
                {"control-id": "ex-2"},
            ],
        }
    )
    result = new_implementation_settings(adapter)
    assert result.all_settings() == Settings({"r"}, {"p": "v"})
    assert result.all_controls() == [{"control-id": "ex-1"}]
    with pytest.raises(LookupError, match="control ex-2 not found in settings"):
        result.by_control_id("ex-2")


# --- framework ---------------------------------------------------------------


@pytest.mark.parametrize(
    "implementation, expected",
    [
        (
            {
                "props": [
                    {"name": FRAMEWORK_PROP, "value": "propFramework", "ns": TRESTLE_NAMESPACE}
                ],
                "source": "profiles/framework/profile.json",
            },
            "propFramework",
        ),
        ({"source": "profiles/sourceFramework/profile.json"}, "sourceFramework"),
        ({}, None),
        ({"source": "a/profiles/x/profile.json"}, None),
        ({"source": "profiles/x/profile.yaml"}, None),
    ],
    ids=["FromProps", "FromSource", "NoShortName", "TooManyParts", "NotJson"],
)
def test_get_framework_short_name(implementation, expected):
    assert get_framework_short_name(implementation) == expected


def test_by_framework():
    settings, framework = by_framework("cis", _implementations())
    expected = ImplementationSettings(
        settings=Settings({"etcd_cert_file", "etcd_key_file"}, {}),
        implemented_req_settings={
            "CIS-2.1": Settings({"etcd_cert_file", "etcd_key_file"}, {}),
        },
        controls_by_rules={
            "etcd_cert_file": {"CIS-2.1"},
            "etcd_key_file": {"CIS-2.1"},
        },
        controls_by_id={"CIS-2.1": {"control-id": "CIS-2.1"}},
    )
    assert framework == FrameworkSource(
        title="cis", description="CIS Profile", href="profiles/cis/profile.json"
    )
    assert settings == expected


def test_by_framework_missing():
    with pytest.raises(
        LookupError, match="framework doesnotexist is not in control implementations"
    ):
        by_framework("doesnotexist", _implementations())


def test_by_framework_merges_matches():
    implementations = _implementations()
    implementations.append(
        {
            "source": "profiles/cis/profile.json",
            "description": "Second",
            "implemented-requirements": [
                {"control-id": "CIS-3.1", "props": [_rule_prop("extra_rule")]}
            ],
        }
    )
    settings, framework = by_framework("cis", implementations)
    assert framework.description == "CIS Profile"
    assert settings.all_settings().mapped_rules == {
        "etcd_cert_file",
        "etcd_key_file",
        "extra_rule",
    }
    assert settings.applicable_controls("extra_rule") == [{"control-id": "CIS-3.1"}]


# --- implementation ----------------------------------------------------------


_MERGE_CASES = [
    (
        {
            "set-parameters": [{"param-id": "my-test-param", "values": ["test-value"]}],
            "implemented-requirements": [
                {
                    "control-id": "ex-1",
                    "props": [_rule_prop("my-test-rule")],
                    "statements": [{"props": [_rule_prop("my-test-rule-2")]}],
                }
            ],
        },
        ImplementationSettings(
            settings=Settings(
                {"etcd_cert_file", "etcd_key_file", "my-test-rule", "my-test-rule-2"},
                {"my-test-param": "test-value"},
            ),
            implemented_req_settings={
                "CIS-2.1": Settings({"etcd_cert_file", "etcd_key_file"}, {}),
                "ex-1": Settings({"my-test-rule", "my-test-rule-2"}, {}),
            },
            controls_by_rules={
                "etcd_cert_file": {"CIS-2.1"},
                "etcd_key_file": {"CIS-2.1"},
                "my-test-rule": {"ex-1"},
                "my-test-rule-2": {"ex-1"},
            },
            controls_by_id={
                "CIS-2.1": {"control-id": "CIS-2.1"},
                "ex-1": {"control-id": "ex-1"},
            },
        ),
    ),
    (
        {
            "implemented-requirements": [
                {
                    "control-id": "CIS-2.1",
                    "set-parameters": [
                        {"param-id": "my-test-param", "values": ["test-value"]}
                    ],
                    "props": [_rule_prop("my-test-rule")],
                }
            ],
        },
        ImplementationSettings(
            settings=Settings({"etcd_cert_file", "etcd_key_file", "my-test-rule"}, {}),
            implemented_req_settings={
                "CIS-2.1": Settings(
                    {"etcd_cert_file", "etcd_key_file", "my-test-rule"},
                    {"my-test-param": "test-value"},
                ),
            },
            controls_by_rules={
                "etcd_cert_file": {"CIS-2.1"},
                "etcd_key_file": {"CIS-2.1"},
                "my-test-rule": {"CIS-2.1"},
            },
            controls_by_id={"CIS-2.1": {"control-id": "CIS-2.1"}},
        ),
    ),
    (
        {
            "implemented-requirements": [
                {"control-id": "ex-1", "props": [_rule_prop("etcd_cert_file")]}
            ],
        },
        ImplementationSettings(
            settings=Settings({"etcd_cert_file", "etcd_key_file"}, {}),
            implemented_req_settings={
                "CIS-2.1": Settings({"etcd_cert_file", "etcd_key_file"}, {}),
                "ex-1": Settings({"etcd_cert_file"}, {}),
            },
            controls_by_rules={
                "etcd_cert_file": {"CIS-2.1", "ex-1"},
                "etcd_key_file": {"CIS-2.1"},
            },
            controls_by_id={
                "CIS-2.1": {"control-id": "CIS-2.1"},
                "ex-1": {"control-id": "ex-1"},
            },
        ),
    ),
]


@pytest.mark.parametrize(
    "implementation, expected",
    _MERGE_CASES,
    ids=["ImplementationOnly", "ExistingControl", "ExistingRule"],
)
def test_merge(implementation, expected):
    settings = _prep_settings()
    settings.merge(ControlImplementationSetAdapter(implementation))
    assert settings == expected


def test_implementation_settings_controls():
    settings = _prep_settings()
    expected = [{"control-id": "CIS-2.1"}]
    assert settings.all_controls() == expected
    assert settings.applicable_controls("etcd_cert_file") == expected


def test_implementation_settings_lookup_errors():
    settings = _prep_settings()
    assert settings.by_control_id("CIS-2.1").mapped_rules == {
        "etcd_cert_file",
        "etcd_key_file",
    }
    with pytest.raises(LookupError, match="rule id missing not found in settings"):
        settings.applicable_controls("missing")
    with pytest.raises(LookupError, match="control missing not found in settings"):
        settings.by_control_id("missing")


# --- settings ----------------------------------------------------------------


def _test_set_1():
    return RuleSet(
        rule=Rule(
            id="testRule1",
            description="Test Rule",
            parameters=[Parameter(id="testParam1", description="Test Parameter")],
        ),
        checks=[Check(id="testCheck1", description="Test Check")],
    )


def _test_set_2():
    return RuleSet(
        rule=Rule(id="testRule2", description="Test Rule"),
        checks=[Check(id="testCheck2", description="Test Check")],
    )


def _test_set_3():
    return RuleSet(
        rule=Rule(
            id="testRule3",
            description="Test Rule",
            parameters=[
                Parameter(id="testParam3", description="Test Parameter", value="default")
            ],
        ),
        checks=[Check(id="testCheck3", description="Test Check")],
    )


class _FakeStore(Store):
    def __init__(self):
        self.data = {
            "testRule1": _test_set_1(),
            "testRule2": _test_set_2(),
            "testRule3": _test_set_3(),
        }

    def get_by_rule_id(self, rule_id):
        try:
            return self.data[rule_id]
        except KeyError:
            raise LookupError(f"rule {rule_id} not found") from None

    def get_by_check_id(self, check_id):
        mapping = {
            "testCheck1": "testRule1",
            "testCheck2": "testRule2",
            "testCheck3": "testRule3",
        }
        if check_id not in mapping:
            raise LookupError(f"rule not found for {check_id}")
        return self.data[mapping[check_id]]

    def find_by_component(self, component_id):
        if component_id == "testComponent1":
            return [self.data["testRule2"], self.data["testRule3"]]
        if component_id == "testComponent2":
            return [self.data["testRule1"], self.data["testRule2"]]
        raise LookupError(f"invalid component id: {component_id}")


def _sorted(rule_sets):
    return sorted(rule_sets, key=lambda rs: rs.rule.id)


def test_apply_to_component_with_mapped_rules():
    store = _FakeStore()
    settings = Settings({"testRule1", "testRule2"}, {})
    assert _sorted(apply_to_component("testComponent1", store, settings)) == [_test_set_2()]


def test_apply_to_component_with_parameter_overrides():
    store = _FakeStore()
    settings = Settings({"testRule1", "testRule2"}, {"testParam1": "updatedValue"})
    got = _sorted(apply_to_component("testComponent2", store, settings))
    expected = [
        RuleSet(
            rule=Rule(
                id="testRule1",
                description="Test Rule",
                parameters=[
                    Parameter(
                        id="testParam1",
                        description="Test Parameter",
                        value="updatedValue",
                    )
                ],
            ),
            checks=[Check(id="testCheck1", description="Test Check")],
        ),
        _test_set_2(),
    ]
    assert got == expected
    original = store.get_by_rule_id("testRule1")
    assert original.rule.parameters[0].value == ""


def test_apply_to_component_invalid_settings():
    with pytest.raises(
        RulesNotFoundError, match="component testComponent1: no rules found with criteria"
    ):
        apply_to_component("testComponent1", _FakeStore(), Settings({"doesnotexists"}))


def test_apply_to_component_store_error():
    with pytest.raises(LookupError, match="invalid component id: nope"):
        apply_to_component("nope", _FakeStore(), Settings({"testRule1"}))


def test_apply_parameter_settings_without_selection_returns_same():
    rule_set = _test_set_3()
    assert Settings({"testRule3"}, {}).apply_parameter_settings(rule_set) is rule_set


def test_contains_rule():
    settings = Settings({"a"}, {})
    assert settings.contains_rule("a") is True
    assert settings.contains_rule("b") is False