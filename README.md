# oscal-sdk

A Python library for OSCAL documents that have been decoded from JSON. Every
OSCAL object is a plain dictionary that uses the hyphenated OSCAL key names,
such as `"control-implementations"` and `"set-parameters"`.

The modules are:

- `oscal_sdk.extensions`: the trestle-namespace property names and the
  `Rule`, `Check`, `Parameter` and `RuleSet` dataclasses. Also provides
  `find_all_props` and `get_trestle_prop`.
- `oscal_sdk.components`: adapters that give one interface to the components,
  control implementations, requirements and statements of component
  definitions (`DefinedComponentAdapter`, `ControlImplementationSetAdapter`)
  and of system security plans (`SystemComponentAdapter`,
  `ControlImplementationAdapter`).
- `oscal_sdk.rules`: `MemoryStore`, which indexes rule sets declared by
  component properties. Properties that belong to one rule share the same
  `remarks`.
- `oscal_sdk.settings`: the rules and parameter values a framework selects.
  Provides `by_framework`, `new_implementation_settings`,
  `new_assessment_activities_settings` and `apply_to_component`.
- `oscal_sdk.plans` and `oscal_sdk.results`: generation of assessment plans
  and assessment results.
- `oscal_sdk.transformers`: conversions from component definitions or an SSP
  to an assessment plan, and from an assessment plan to assessment results.
- `oscal_sdk.models`: document loaders and `new_sample_metadata`.
- `oscal_sdk.modelutils`: helpers that search model dictionaries for values.
- `oscal_sdk.validation`: validators.

## Installation

```
pip install .
```

The package has no runtime dependencies. To run the tests, install the
`test` extra:

```
pip install ".[test]"
pytest
```

## Loading documents

Each loader takes a text stream and a validator and works in this order:

1. It parses the JSON.
2. It raises `ValueError` if the document has a top-level field that is not
   an OSCAL model name.
3. It runs the validator.
4. It returns the requested model as a dictionary. If the document does not
   contain that model, it returns `None`.

```python
from oscal_sdk.models import new_component_definition
from oscal_sdk.validation import NoopValidator

with open("component-definition.json") as reader:
    definition = new_component_definition(reader, NoopValidator())
```

The other loaders are:

- `new_catalog`
- `new_profile`
- `new_system_security_plan`
- `new_assessment_plan`
- `new_assessment_results`
- `new_poam`

## Generating plans and results

```python
from oscal_sdk.transformers import (
    assessment_plan_to_assessment_results,
    component_definitions_to_assessment_plan,
    ssp_to_assessment_plan,
)

plan = component_definitions_to_assessment_plan([definition], "cis")
print(plan["reviewed-controls"]["control-selections"])

results = assessment_plan_to_assessment_results(plan, "path/to/ap.json")
```

### Plans from component definitions

A framework is matched by its `Framework_Short_Name` property. If that
property is absent, the framework name comes from a control source of the
form `profiles/<name>/profile.json`. If no control implementation matches
the framework, a `LookupError` is raised.

The plan links back to the control source through its back-matter and
through `reviewed-controls.links`.

### Plans from a system security plan

`ssp_to_assessment_plan(ssp, "path/to/ssp.json")` builds a plan from a system
security plan. It leaves out the following components:

- components that have no properties
- the component titled "This System"

### Assessment results

`assessment_plan_to_assessment_results(plan, import_path, *observations)`
produces one result per task and one observation per activity step.

Observations that you pass in are matched to steps in this order:

1. by their `assessment-check-id` property
2. by their title

Steps that match no observation get a new, empty observation titled after
the check. A plan without `tasks` raises `ValueError`.

## Querying rules

```python
from oscal_sdk.components import DefinedComponentAdapter
from oscal_sdk.rules import MemoryStore

store = MemoryStore()
store.index_all([DefinedComponentAdapter(c) for c in definition["components"]])
rule_set = store.get_by_rule_id("etcd_key_file")
print(rule_set.rule.description, [check.id for check in rule_set.checks])
```

- `get_by_rule_id` and `get_by_check_id` raise `RuleNotFoundError` when
  nothing matches.
- `find_by_component` takes a component title and returns that component's
  rule sets. For a validation component, only the checks it implements are
  returned. An unknown title raises `LookupError`.
- `index_all` raises `ComponentsNotFoundError` when it is given no
  components.

`settings.apply_to_component(title, store, settings)` keeps the rule sets
that the settings map and applies the selected parameter values to them.
If no rule set remains, it raises `RulesNotFoundError`.

## Validation

```python
from oscal_sdk.validation import NoopValidator, UuidValidator, validate_all

validator = validate_all(UuidValidator(), NoopValidator())
validator.validate({"component-definition": definition})
```

The available validators are:

- `NoopValidator` accepts everything.
- `UuidValidator` raises `ValueError` when a `uuid` value appears twice
  anywhere in the models. In a profile, it also raises `ValueError` when a
  `param-id` value appears twice.
- `ValidatorFunc` wraps any callable as a validator.
- `validate_all` runs every validator it is given. If any of them fail, it
  raises one `ValueError`. That error lists every failure message, and its
  `errors` attribute holds the individual exceptions.

`ValidationError` is available for validators that report a validator type
and a model name.

## What the package does not do

- It does not validate documents against the OSCAL JSON schema. None of the
  bundled validators checks structure beyond the checks described above.
- It does not turn dictionaries into typed OSCAL model classes.
- It provides no command-line interface. It is used as a library only.