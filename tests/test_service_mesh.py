"""Tests for the service mesh builders."""

import pytest

from conftest import FakeResourceClient, make_resource
from models import DeferredConfigurationError, RemoteAPIError, ResourceNotFoundError
from resources.service_mesh import (
    CONTROL_PLANE_KIND,
    MEMBER_ROLL_KIND,
    ControlPlaneBuilder,
    MemberRollBuilder,
)

NAMESPACE = "istio-system"


@pytest.fixture
def control_plane(fake_client) -> ControlPlaneBuilder:
    return ControlPlaneBuilder.new(fake_client, "basic", NAMESPACE)


class TestControlPlaneBuilder:
    """Tests for ServiceMeshControlPlane mutators."""

    def test_empty_namespace(self, fake_client):
        builder = ControlPlaneBuilder.new(fake_client, "basic", "")

        assert builder.error_msg == "serviceMeshControlPlane 'nsname' cannot be empty"

    def test_all_addons_disabled(self, control_plane):
        addons = control_plane.with_all_addons_disabled().definition.spec["addons"]

        assert addons["prometheus"]["enabled"] is False
        assert addons["grafana"]["enabled"] is False
        assert addons["kiali"]["enabled"] is False
        assert addons["jaeger"]["install"]["ingress"]["enabled"] is False

    def test_grafana_addon(self, control_plane):
        builder = control_plane.with_all_addons_disabled().with_grafana_addon(
            True, address="grafana.example.com"
        )

        grafana = builder.definition.spec["addons"]["grafana"]
        assert grafana == {"enabled": True, "address": "grafana.example.com"}
        assert builder.definition.spec["addons"]["kiali"]["enabled"] is False

    def test_jaeger_addon(self, control_plane):
        builder = control_plane.with_jaeger_addon(
            "jaeger",
            "Memory",
            memory_max_traces=100000,
            ingress_enabled=True,
            ingress_labels={"app": "jaeger"},
        )

        jaeger = builder.definition.spec["addons"]["jaeger"]
        assert jaeger["name"] == "jaeger"
        assert jaeger["install"]["storage"] == {
            "type": "Memory",
            "memory": {"maxTraces": 100000},
        }
        assert jaeger["install"]["ingress"]["enabled"] is True
        assert jaeger["install"]["ingress"]["metadata"]["labels"] == {"app": "jaeger"}

    def test_jaeger_addon_bad_storage(self, control_plane):
        builder = control_plane.with_jaeger_addon("jaeger", "Cassandra")

        assert builder.error_msg == "'storageType' argument must be one of Memory, Elasticsearch"

    def test_kiali_addon(self, control_plane):
        builder = control_plane.with_kiali_addon(
            True, "kiali", dashboard={"viewOnly": True}, service={"nodePort": 30001}
        )

        kiali = builder.definition.spec["addons"]["kiali"]
        assert kiali["name"] == "kiali"
        assert kiali["install"]["dashboard"] == {"viewOnly": True}
        assert kiali["install"]["service"] == {"nodePort": 30001}

    def test_prometheus_addon(self, control_plane):
        builder = control_plane.with_prometheus_addon(
            True, metrics_expiry_duration="1h", install={"retention": "6h"}
        )

        prometheus = builder.definition.spec["addons"]["prometheus"]
        assert prometheus["enabled"] is True
        assert prometheus["scrape"] is True
        assert prometheus["metricsExpiryDuration"] == "1h"
        assert prometheus["install"] == {"selfManaged": False, "retention": "6h"}

    def test_gateways_enablement(self, control_plane):
        builder = control_plane.with_gateways_enablement(False)

        assert builder.definition.spec["gateways"] == {"enabled": False}

    def test_exists(self):
        client = FakeResourceClient([make_resource(CONTROL_PLANE_KIND, "basic", NAMESPACE)])

        assert ControlPlaneBuilder.new(client, "basic", NAMESPACE).exists() is True
        assert ControlPlaneBuilder.new(client, "other", NAMESPACE).exists() is False


class TestMemberRollBuilder:
    """Tests for ServiceMeshMemberRoll."""

    def test_with_members(self, fake_client):
        builder = MemberRollBuilder.new(fake_client, "default", NAMESPACE).with_members(
            ["bookinfo", "payments"]
        )

        assert builder.definition.spec["members"] == ["bookinfo", "payments"]

    def test_empty_members(self, fake_client):
        builder = MemberRollBuilder.new(fake_client, "default", NAMESPACE).with_members([])

        assert builder.error_msg == "'members' argument cannot be empty"

    def test_blank_member(self, fake_client):
        builder = MemberRollBuilder.new(fake_client, "default", NAMESPACE).with_members(
            ["bookinfo", ""]
        )

        assert builder.error_msg == "'members' argument cannot contain an empty namespace"

    def test_delete_absent_is_noop(self, fake_client):
        MemberRollBuilder.new(fake_client, "default", NAMESPACE).delete()

        assert "delete" not in fake_client.verbs()

    def test_pull(self):
        client = FakeResourceClient(
            [make_resource(MEMBER_ROLL_KIND, "default", NAMESPACE, {"members": ["bookinfo"]})]
        )

        builder = MemberRollBuilder.pull(client, "default", NAMESPACE)

        assert builder.definition.spec["members"] == ["bookinfo"]


class TestDiscover:
    """Tests for discover() on the service mesh builders."""

    def test_control_plane(self):
        client = FakeResourceClient(
            [make_resource(CONTROL_PLANE_KIND, "basic", NAMESPACE, {"version": "v2.6"})]
        )
        builder = ControlPlaneBuilder.new(client, "basic", NAMESPACE)

        discovered = builder.discover()

        assert discovered.spec == {"version": "v2.6"}
        assert builder.object == discovered

    def test_member_roll(self):
        client = FakeResourceClient(
            [make_resource(MEMBER_ROLL_KIND, "default", NAMESPACE, {"members": ["bookinfo"]})]
        )
        builder = MemberRollBuilder.new(client, "default", NAMESPACE)

        assert builder.discover().spec["members"] == ["bookinfo"]

    def test_absent_raises_not_found(self, fake_client):
        builder = MemberRollBuilder.new(fake_client, "default", NAMESPACE)

        with pytest.raises(ResourceNotFoundError, match='servicemeshmemberrolls.maistra.io "default" not found'):
            builder.discover()

        assert builder.object is None

    def test_clears_stale_object(self):
        client = FakeResourceClient([make_resource(CONTROL_PLANE_KIND, "basic", NAMESPACE)])
        builder = ControlPlaneBuilder.new(client, "basic", NAMESPACE)
        builder.discover()
        client.fail_on["get"] = RemoteAPIError("connection refused")

        with pytest.raises(RemoteAPIError):
            builder.discover()

        assert builder.object is None

    def test_invalid_builder(self, fake_client):
        builder = ControlPlaneBuilder.new(fake_client, "", NAMESPACE)

        with pytest.raises(DeferredConfigurationError):
            builder.discover()

        assert fake_client.calls == []
