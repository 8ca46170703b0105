"""Tests for the StorageCluster builder."""

import pytest

from conftest import FakeResourceClient, make_resource
from models import BuilderError, DeferredConfigurationError
from resources.storage_cluster import STORAGE_CLUSTER_KIND, StorageClusterBuilder

NAME = "ocs-storagecluster"
NAMESPACE = "openshift-storage"

LIVE_SPEC = {
    "manageNodes": True,
    "managedResources": {"cephBlockPools": {"reconcileStrategy": "manage"}},
    "monDataDirHostPath": "/var/lib/rook",
    "multiCloudGateway": {"reconcileStrategy": "ignore"},
    "storageDeviceSets": [{"name": "ocs-deviceset", "count": 1, "replica": 3}],
}


@pytest.fixture
def live_client() -> FakeResourceClient:
    return FakeResourceClient([make_resource(STORAGE_CLUSTER_KIND, NAME, NAMESPACE, LIVE_SPEC)])


class TestStorageClusterReaders:
    """Tests for the get_* readers."""

    def test_reads_live_spec(self, live_client):
        builder = StorageClusterBuilder.new(live_client, NAME, NAMESPACE)

        assert builder.get_manage_nodes() is True
        assert builder.get_managed_resources() == LIVE_SPEC["managedResources"]
        assert builder.get_mon_data_dir_host_path() == "/var/lib/rook"
        assert builder.get_multi_cloud_gateway() == {"reconcileStrategy": "ignore"}
        assert builder.get_storage_device_sets()[0]["name"] == "ocs-deviceset"

    def test_refreshes_object(self, live_client):
        builder = StorageClusterBuilder.new(live_client, NAME, NAMESPACE)

        builder.get_manage_nodes()

        assert builder.object.spec["manageNodes"] is True

    def test_absent(self, fake_client):
        builder = StorageClusterBuilder.new(fake_client, NAME, NAMESPACE)

        with pytest.raises(BuilderError) as exc:
            builder.get_manage_nodes()

        assert str(exc.value) == (
            "storageCluster object ocs-storagecluster does not exist "
            "in namespace openshift-storage"
        )

    def test_invalid_builder(self, live_client):
        builder = StorageClusterBuilder.new(live_client, NAME, "")

        with pytest.raises(DeferredConfigurationError, match="'nsname' cannot be empty"):
            builder.get_storage_device_sets()

        assert live_client.calls == []


class TestStorageClusterMutators:
    """Tests for StorageCluster mutators."""

    def test_chain(self, fake_client):
        builder = (
            StorageClusterBuilder.new(fake_client, NAME, NAMESPACE)
            .with_managed_nodes(True)
            .with_managed_resources({"cephFilesystems": {"reconcileStrategy": "manage"}})
            .with_mon_data_dir_host_path("/var/lib/rook")
            .with_multi_cloud_gateway({"reconcileStrategy": "manage"})
            .with_storage_device_set({"name": "set-a", "count": 1})
            .with_storage_device_set({"name": "set-b", "count": 2})
        )

        spec = builder.definition.spec
        assert builder.error_msg == ""
        assert spec["manageNodes"] is True
        assert spec["monDataDirHostPath"] == "/var/lib/rook"
        assert [s["name"] for s in spec["storageDeviceSets"]] == ["set-a", "set-b"]

    @pytest.mark.parametrize(
        "mutate, message",
        [
            (lambda b: b.with_managed_resources({}), "the expectedManagedResources can not be empty"),
            (lambda b: b.with_mon_data_dir_host_path(""), "the expectedMonDataDirHostPath can not be empty"),
            (lambda b: b.with_multi_cloud_gateway({}), "the expectedMultiCloudGateway can not be empty"),
            (lambda b: b.with_storage_device_set({}), "the expectedStorageDeviceSet can not be empty"),
        ],
    )
    def test_empty_values(self, fake_client, mutate, message):
        builder = mutate(StorageClusterBuilder.new(fake_client, NAME, NAMESPACE))

        assert builder.error_msg == message

    def test_update_live_cluster(self, live_client):
        builder = StorageClusterBuilder.pull(live_client, NAME, NAMESPACE)

        builder.with_managed_nodes(False).update()

        assert builder.get_manage_nodes() is False


class TestStorageClusterDelete:
    """Tests for StorageCluster deletion."""

    def test_delete(self, live_client):
        builder = StorageClusterBuilder.new(live_client, NAME, NAMESPACE)

        builder.delete()

        assert live_client.store == {}
        assert builder.object is None

    def test_delete_absent_is_an_error(self, fake_client):
        builder = StorageClusterBuilder.new(fake_client, NAME, NAMESPACE)

        with pytest.raises(BuilderError, match="storageCluster cannot be deleted because it does not exist"):
            builder.delete()

        assert "delete" not in fake_client.verbs()
