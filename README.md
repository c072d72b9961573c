# keyharbour

A Python client library for parts of the KeyHarbour API, with a few
standalone helpers.

API groups, each a class you construct with an endpoint:

- `keyharbour.applications.ApplicationsApi`: licence applications
- `keyharbour.instances.InstancesApi`: instances of an application
- `keyharbour.licensees.LicenseesApi`: licensees of an instance
- `keyharbour.team_members.TeamMembersApi`: team members of the organisation
- `keyharbour.keyvalues.KeyValuesApi`: key/value entries of a workspace

Supporting modules:

- `keyharbour.models`: the records sent to and received from the API, as
  dataclasses with `to_dict()` and `from_dict()`
- `keyharbour.transport`: `Transport`, the HTTP layer the API classes share
- `keyharbour.apierror`: `APIError` and response decoding
- `keyharbour.kvencrypt`: AES-256-GCM encryption of values in the
  `enc:v1:<base64url>` format
- `keyharbour.checksum`: SHA-256 hex digests
- `keyharbour.workerpool`: runs a function over items with bounded concurrency
- `keyharbour.output`: prints aligned tables and indented JSON
- `keyharbour.debuglog`: debug messages on stderr that can be switched on and off

## Installation

```
pip install keyharbour
```

Python 3.10 or later is required. The package depends on `requests` and
`cryptography`.

## Using the API classes

Every API class takes the same constructor arguments:
`endpoint`, `token=""`, `org=""`, `insecure_tls=False`, `retries=2`,
`retry_wait=0.2` (seconds) and `timeout=30.0` (seconds).

```python
from keyharbour.applications import ApplicationsApi
from keyharbour.instances import InstancesApi
from keyharbour.models import CreateApplicationRequest, UpdateInstanceRequest

apps = ApplicationsApi("https://kh.example.com", token="token", org="acme")
created = apps.create_application(
    CreateApplicationRequest(name="Monitoring", short_name="mon", owner="ops", vendor="Acme")
)
for app in apps.list_applications():
    print(app.uuid, app.name, app.status)

instances = InstancesApi("https://kh.example.com", token="token")
instances.update_instance("inst-1", UpdateInstanceRequest(status="disabled"))
```

Requests carry `Accept: application/json`, `Authorization: Bearer <token>`
when a token is set, and `X-Org` when an organisation is set. JSON request
bodies are wrapped under the resource name, for example
`{"application": {...}}`. `get_*` methods fill in the record's `uuid` from the
request when the response leaves it out.

### Key/value entries

```python
from keyharbour.keyvalues import KeyValuesApi
from keyharbour.models import CreateKeyValueRequest, UpdateKeyValueRequest

kv = KeyValuesApi("https://kh.example.com", token="token")
kv.create_key_value("ws-1", CreateKeyValueRequest(key="region", payload="eu-west-1"))
entry = kv.get_key_value("region")
print(entry.value, entry.raw_value)
kv.update_key_value("region", UpdateKeyValueRequest(payload="eu-central-1", private=True))
kv.delete_key_value("region")
```

Creates and updates are sent as `multipart/form-data`, built by
`build_key_value_multipart_body`. With `payload_from_file=True` the value goes
in a `value_file` file part instead of a `value` field. `list_key_values`
returns an empty list when the workspace is not found (404). `get_key_value`
accepts either a JSON response or a raw body.

### Retries

`Transport.request` retries requests that time out, and responses with status
408, 429, or any 5xx other than 501. The wait before attempt `n + 1` is
`retry_wait * 2**n` with ±20% jitter (`Transport.retry_delay`). If a status
stays temporary through every attempt, `requests.HTTPError` is raised; other
transport failures are re-raised as they come from `requests`.

### Errors

An unexpected status raises `keyharbour.apierror.APIError`, carrying
`status_code`, `message` (taken from the body's `message`, `error` or
`detail`, or the `errors` list joined with `"; "`), `body` (trimmed to 300
characters) and `op`, the operation name. A non-JSON content type or a body
that does not parse also raises `APIError`.

A missing identifier raises before any request is sent: `APIError` with status
400 for the licence classes and `get_key_value`, `ValueError` for the other
key/value calls. A `Transport` with no endpoint raises `ValueError`.

```python
from keyharbour.apierror import APIError

try:
    apps.get_application("app-1")
except APIError as err:
    print(err.status_code, err)
```

## Encrypting values

```python
from keyharbour.kvencrypt import KvEncryptError, decrypt, encrypt, is_encrypted, parse_key

key = parse_key("ab" * 32)          # 64 hex characters
sealed = encrypt(key, "placeholder")
assert is_encrypted(sealed)
assert decrypt(key, sealed) == "placeholder"
```

`decrypt` raises `KvEncryptError` if the value is not in the encrypted format,
if the key is wrong, or if the data is corrupted. `parse_key` raises it for a
key that is not 64 hex characters.

## Other helpers

```python
import sys

from keyharbour import debuglog
from keyharbour.checksum import sha256_hex
from keyharbour.output import Printer
from keyharbour.workerpool import run

sha256_hex(b"hello")
# '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'

results = run([1, 2, 3], 2, lambda item: None)
# one Result per item, in item order; Result.err holds any exception raised

Printer(format="table", out=sys.stdout).table(["NAME", "STATUS"], [["alpha", "ok"]])
Printer(format="json").table(["NAME"], [["alpha"]])   # {"headers": [...], "rows": [...]}

debuglog.set_debug(True)   # the transport then logs each request and status
```

## What the package does not do

- There are no API calls for Terraform state, state locks, statefiles,
  projects or workspaces. `keyharbour.models` defines records for them
  (`StateMeta`, `Statefile`, `Project`, `Workspace` and their request types),
  but nothing sends them.
- There is no single client object combining the API classes; use each class
  on its own.
- There is no command-line program and no configuration file handling.

## Running the tests

```
pip install -e ".[test]"
pytest
```