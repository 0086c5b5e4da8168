# flyte

Building blocks for a workflow automation API. Each module does one job.

| Module | What it gives you |
| --- | --- |
| `flyte.config` | `load_config`, `Config`, `ConfigError`, `parse_log_level` |
| `flyte.collection_utils` | `contains_all`, `merge`, `sorted_keys`, `contains`, `has_matching_element`, `to_string_list` |
| `flyte.auth_policy` | `load_path_policies`, `PathPolicy`, `PolicyClaims`, `PolicyError`, `resolve_template`, `resolve_templates` |
| `flyte.web` | `Link`, `Response`, `json_response`, `find_url_by_rel`, `join` |
| `flyte.audit_model` | `Flow`, `Step`, `EventDef`, `Command`, `Action`, `Pack`, `State`, `Event` |
| `flyte.audit_repo` | `FlowsFilter`, `MongoFlowRepository`, `group_actions_into_flows`, `sort_flows` |
| `flyte.audit_api` | `get_flows`, `get_flow`, `flows_filter_from_query`, `flows_response`, `flow_response`, `key_value_pairs` |
| `flyte.datastore` | `DataItem`, `DataItemNotFound`, `MongoDataStoreRepository` |
| `flyte.datastore_api` | `get_items`, `get_item`, `store_item`, `delete_item`, `get_datastore_value`, `data_items_response`, `data_item_from_upload`, `DataStoreValueError`, `InvalidDataItem` |
| `flyte.http_client` | `HttpClient` |

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Configuration

`load_config(environ=None, file_exists=None)` reads settings from a mapping. It uses `os.environ` when no mapping is given. It returns a frozen `Config` dataclass.

| Variable | `Config` field | Default |
| --- | --- | --- |
| `FLYTE_PORT` | `port` | `"8443"` when both TLS paths are set, otherwise `"8080"` |
| `FLYTE_TLS_CERT_PATH` | `tls_cert_path` | `""` |
| `FLYTE_TLS_KEY_PATH` | `tls_key_path` | `""` |
| `FLYTE_MGO_HOST` | `mongo_host` | `"localhost:27017"` |
| `FLYTE_AUTH_POLICY_PATH` | `auth_policy_path` | `""` |
| `FLYTE_OIDC_ISSUER_URL` | `oidc_issuer_url` | `""` |
| `FLYTE_OIDC_ISSUER_CLIENT_ID` | `oidc_issuer_client_id` | `""` |
| `FLYTE_TTL_IN_SECONDS` | `flyte_ttl` | `31557600` |
| `FLYTE_SHOULD_DELETE_DEAD_PACKS` | `should_delete_dead_packs` | `False` |
| `FLYTE_DELETE_DEAD_PACKS_AT_HH_COLON_MM` | `delete_dead_packs_time` | `"23:00"` |
| `FLYTE_PACK_GRACE_PERIOD_UNTIL_MARKED_DEAD_IN_SECONDS` | `pack_grace_period_until_dead_in_seconds` | `604800` |
| `LOGLEVEL` | `log_level` | `info` |

Some values fall back to their default, with an error logged, when they are malformed:

- an integer that does not parse;
- a boolean other than `1`, `t`, `true`, `0`, `f`, `false` and their capitalised forms;
- a time that is not a valid `HH:MM` clock time.

`parse_log_level` accepts the level names `trace`, `debug`, `info`, `warn`, `error`, `fatal`, `panic` and `disabled`. It gives `logging.INFO` for any name it does not know. `load_config` also sets the level of the `flyte` logger to the chosen level.

`ConfigError` is raised in two cases:

- the port is not an integer between 0 and 65535;
- a TLS path is set but `file_exists(path)` is false.

`Config.require_tls()` is true when both TLS paths are set. `Config.require_auth()` is true when the policy path, issuer URL and client id are all set.

```python
from flyte.config import load_config

config = load_config({"FLYTE_MGO_HOST": "mongo:27017"}, lambda path: True)
print(config.port, config.require_tls(), config.require_auth())  # 8080 False False
```

## Auth policies

A policy file is a YAML list of entries. Each entry has a `path`, optional `methods` and `claims`. `load_path_policies` turns the file into a list of `PathPolicy` objects. If the file cannot be read or parsed, it raises `PolicyError`.

```yaml
- path: /v1/packs/:pack
  methods: [GET]
  claims:
    groups: [dev, ":pack"]
```

```python
from flyte.auth_policy import load_path_policies

policies = load_path_policies("policy.yaml")
allowed = policies[0].claims.fulfilled({"groups": ["dev"]}, {"pack": "bamboo"})
```

`PolicyClaims.fulfilled(token_claims, placeholder_values)` is true when **any one** policy claim is matched by the token. An empty policy is always fulfilled.

Claim names and values that begin with `:` are looked up in `placeholder_values`. A name missing from it resolves to the empty string.

A token claim is compared according to its type:

| Token claim type | How it is compared |
| --- | --- |
| string | compared directly |
| boolean | compared as `"true"` / `"false"` |
| integer | compared as its decimal form |
| list of strings | matches if any element matches |

Any other type never matches.

## Web helpers

- `json_response(payload, status=200)` returns a `Response` with `status`, `headers` and `body`. The body is compact JSON and the content type is `application/json`. Objects with a `to_dict()` method are serialised through it.
- `join("http://host/", "/a/", "b")` gives `"http://host/a/b"`. Empty elements are skipped, and a trailing slash on the last element is kept.
- `find_url_by_rel(links, rel)` returns the `href` of the first `Link` whose `rel` ends with `rel`. If none does, it raises `LookupError`.

## Audit of flow executions

`Flow.to_dict()` and `Action.to_dict()` give the JSON shape of the API, with camelCase keys and RFC 3339 times. An unset time appears as `0001-01-01T00:00:00Z`. `from_dict` reads that shape back, and also reads stored documents that use `_id`.

`MongoFlowRepository(audit_collection, history_collection)` works with any collection objects that provide MongoDB-style `aggregate`, `find` and `find_one`.

- `find(flows_filter)` returns matching executions, most recently active first. It honours the filter's `skip` and `limit`; the default limit is 50.
- `get(correlation_id)` returns one execution, or `None`.

`get_flows(repository, base_url, query)` and `get_flow(repository, base_url, correlation_id)` return a `Response`:

- 200 with the flows and their hypermedia links;
- 404 when `get_flow` finds nothing;
- 500 when the repository raises.

Query parameters are read by `flows_filter_from_query`:

| Parameter | Meaning |
| --- | --- |
| `flowName` | flow name |
| `stepId` | step id |
| `actionName` | action name |
| `actionPackName` | name of the action's pack |
| `actionPackLabels` | pack labels, written as `env:dev,foo:bar` |
| `start` | how many results to skip |
| `limit` | how many results to return |

A query value may be a string or a list of strings.

```python
from flyte.audit_api import get_flows

response = get_flows(repository, "http://example.com", {"flowName": ["deploy"], "limit": ["10"]})
print(response.status, response.body)
```

## Datastore

`MongoDataStoreRepository(collection)` keeps `DataItem` records. It works with a collection that provides MongoDB-style `replace_one`, `delete_one`, `find_one` and `find`.

| Method | Behaviour |
| --- | --- |
| `store` | returns `True` when it replaced an existing item |
| `remove` | raises `DataItemNotFound` when the key is unknown |
| `get` | raises `DataItemNotFound` when the key is unknown |
| `find_all` | returns every item without its value |

The handlers in `flyte.datastore_api` return a `Response`:

| Handler | Responses |
| --- | --- |
| `get_items` | 200 JSON list with links |
| `get_item` | 200 with the raw value in its own content type, 404, or 500 |
| `store_item` | 201 created, 204 replaced, 400 when the content is missing or empty or the key is empty, or 500 |
| `delete_item` | 204, 404, or 500 |

Uploads without a content type are stored as `text/plain; charset=us-ascii`.

`get_datastore_value(repository, key)` returns a dict for items whose content type starts with `application/json` or `text/json`. For other items it returns the value as text. It raises `DataStoreValueError` when the item cannot be fetched, or when a JSON item is not a JSON object.

## HTTP client

`HttpClient(timeout=15.0)` is a `requests`-based client that does not verify TLS certificates. It offers:

- `get` and `get_json`;
- `post`, which sends a JSON text body;
- `post_json`, which serialises a value to JSON first;
- `post_resource`, which returns the absolute `Location` URL and raises `LookupError` if the header is missing;
- `post_with_json_response`;
- `put_multipart`, which sends the file as field `value` followed by the form fields;
- `delete`.

## What this package does not do

There is no HTTP server, router or command to start one. The handlers return `Response` objects for you to wire into a web framework of your choice.

The package does not verify OIDC tokens. `PolicyClaims.fulfilled` only checks claims that you have already taken from a verified token.

It does not open database connections. The repositories are given collection objects by the caller.