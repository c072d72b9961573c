import json
import re

import pytest
import responses

from keyharbour.apierror import APIError
from keyharbour.instances import InstancesApi
from keyharbour.models import CreateInstanceRequest, Instance, UpdateInstanceRequest

ENDPOINT = "https://kh.example.com"
ANY_URL = re.compile(r"https://kh\.example\.com/.*")


@pytest.fixture
def rsps():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as mock:
        yield mock


def _client():
    return InstancesApi(ENDPOINT, retry_wait=0.001)


def _path(call):
    return call.request.path_url.split("?")[0]


def test_list_instances(rsps):
    rsps.add(
        responses.GET,
        ANY_URL,
        json=[
            Instance(uuid="inst-1", name="Production", short_name="prod").to_dict(),
            Instance(uuid="inst-2", name="Staging", short_name="stg").to_dict(),
        ],
    )
    items = _client().list_instances("app-1")
    call = rsps.calls[0]
    assert call.request.method == "GET"
    assert _path(call) == "/license/applications/app-1/instances"
    assert len(items) == 2
    assert items[0].uuid == "inst-1"
    assert items[0].name == "Production"


def test_list_instances_requires_application_uuid(rsps):
    with pytest.raises(APIError) as info:
        _client().list_instances("")
    assert info.value.message == "application uuid is required"
    assert len(rsps.calls) == 0


def test_list_instances_rejects_non_array(rsps):
    rsps.add(responses.GET, ANY_URL, json={"uuid": "inst-1"})
    with pytest.raises(APIError) as info:
        _client().list_instances("app-1")
    assert info.value.message.startswith("json decode error:")


def test_get_instance(rsps):
    rsps.add(
        responses.GET,
        ANY_URL,
        json=Instance(name="Production", short_name="prod", status="active").to_dict(),
    )
    inst = _client().get_instance("inst-1")
    assert _path(rsps.calls[0]) == "/license/instances/inst-1"
    assert inst.uuid == "inst-1"
    assert inst.name == "Production"


def test_get_instance_requires_uuid(rsps):
    with pytest.raises(APIError) as info:
        _client().get_instance("")
    assert info.value.status_code == 400
    assert info.value.message == "instance uuid is required"
    assert len(rsps.calls) == 0


def test_create_instance(rsps):
    rsps.add(
        responses.POST,
        ANY_URL,
        status=201,
        json=Instance(uuid="inst-uuid-1", name="Production", short_name="prod").to_dict(),
    )
    inst = _client().create_instance(
        "app-1", CreateInstanceRequest(name="Production", short_name="prod", owner="ops")
    )
    call = rsps.calls[0]
    assert call.request.method == "POST"
    assert _path(call) == "/license/applications/app-1/instances"
    assert inst.uuid == "inst-uuid-1"
    wrapper = json.loads(call.request.body)["instance"]
    assert wrapper["name"] == "Production"
    assert wrapper["owner"] == "ops"


def test_create_instance_requires_application_uuid(rsps):
    with pytest.raises(APIError):
        _client().create_instance("", CreateInstanceRequest(name="x"))
    assert len(rsps.calls) == 0


def test_update_instance(rsps):
    rsps.add(responses.PATCH, ANY_URL, status=202, json={"status": "updated"})
    result = _client().update_instance("inst-1", UpdateInstanceRequest(status="disabled"))
    call = rsps.calls[0]
    assert result is None
    assert call.request.method == "PATCH"
    assert _path(call) == "/license/instances/inst-1"
    assert json.loads(call.request.body)["instance"]["status"] == "disabled"


def test_update_instance_requires_uuid(rsps):
    with pytest.raises(APIError):
        _client().update_instance("", UpdateInstanceRequest())
    assert len(rsps.calls) == 0


def test_update_instance_wrong_status(rsps):
    rsps.add(responses.PATCH, ANY_URL, status=200, json={"status": "updated"})
    with pytest.raises(APIError) as info:
        _client().update_instance("inst-1", UpdateInstanceRequest(status="disabled"))
    assert info.value.op == "update instance"
    assert info.value.status_code == 200


def test_delete_instance(rsps):
    rsps.add(responses.DELETE, ANY_URL, status=204)
    assert _client().delete_instance("inst-1") is None
    assert len(rsps.calls) == 1
    assert rsps.calls[0].request.method == "DELETE"
    assert _path(rsps.calls[0]) == "/license/instances/inst-1"


def test_delete_instance_requires_uuid(rsps):
    with pytest.raises(APIError):
        _client().delete_instance("")
    assert len(rsps.calls) == 0