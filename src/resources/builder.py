"""Generic builder protocol shared by every managed custom resource kind.

A builder pairs a locally held desired state (``definition``) with the last
observed remote state (``object``). Configuration mistakes are recorded in
``error_msg`` instead of being raised, so calls can be chained fluently; the
first recorded mistake sticks and makes every later operation fail through
the validation gate.

Per-kind behaviour (scope, delete-absent policy, message label) comes from
the ``kind`` class attribute of each subclass, never from overridden
lifecycle methods.
"""

import copy
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ClassVar, TypeVar

from kube_client import ResourceAccessor
from metrics import BUILDER_OPERATIONS_TOTAL
from models import (
    BuilderError,
    BuilderValidationError,
    CustomResource,
    DeferredConfigurationError,
    DeleteAbsentPolicy,
    NilAccessorError,
    NilBuilderError,
    OperatorError,
    RemoteAPIError,
    ResourceKind,
    ResourceNotFoundError,
    UndefinedDefinitionError,
)
from utils import object_key

logger = logging.getLogger(__name__)

B = TypeVar("B", bound="Builder")


def validate(builder: "Builder | None", resource_crd: str) -> None:
    """Run the validation gate, raising the first failing check.

    Checks, in order: the builder exists, it carries a definition, it has a
    remote accessor, and no deferred configuration error was recorded.
    """
    if builder is None:
        logger.debug(f"The {resource_crd} builder is uninitialized")
        raise NilBuilderError(f"error: received nil {resource_crd} builder")

    if builder.definition is None:
        logger.debug(f"The {resource_crd} is undefined")
        raise UndefinedDefinitionError(f"can not redefine the undefined {resource_crd}")

    if builder.api_client is None:
        logger.debug(f"The {resource_crd} builder apiclient is nil")
        raise NilAccessorError(f"{resource_crd} builder cannot have nil apiClient")

    if builder.error_msg:
        logger.debug(f"The {resource_crd} builder has error message: {builder.error_msg}")
        raise DeferredConfigurationError(builder.error_msg)


class Builder:
    """Desired/observed state pair for one custom resource instance.

    Attributes:
        definition: Desired state; changed only by ``with_*`` mutators or by pull.
        object: Last observed remote state, None until fetched and after delete.
        error_msg: Sticky deferred configuration error, empty when none.
        api_client: Shared remote accessor; the builder does not own it.
    """

    kind: ClassVar[ResourceKind]

    def __init__(
        self,
        api_client: ResourceAccessor | None,
        definition: CustomResource | None,
        error_msg: str = "",
    ) -> None:
        self.api_client = api_client
        self.definition = definition
        self.object: CustomResource | None = None
        self.error_msg = error_msg

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def new(
        cls: type[B], api_client: ResourceAccessor | None, name: str, nsname: str = ""
    ) -> B | None:
        """Create a builder for a new object.

        Returns None when ``api_client`` is None. Otherwise always returns a
        builder; an empty name (or namespace, for namespaced kinds) is
        recorded as its deferred error, first failure only.
        """
        kind = cls.kind
        logger.debug(
            f"Initializing new {kind.label} structure with the following params: "
            f"name: {name}, namespace: {nsname}"
        )

        if api_client is None:
            logger.debug(f"{kind.label} 'apiClient' cannot be empty")
            return None

        builder = cls(api_client, CustomResource.for_kind(kind, name, nsname))

        if not name:
            logger.debug(f"The name of the {kind.label} is empty")
            builder.error_msg = f"{kind.label} 'name' cannot be empty"
        elif kind.namespaced and not nsname:
            logger.debug(f"The namespace of the {kind.label} is empty")
            builder.error_msg = f"{kind.label} 'nsname' cannot be empty"

        return builder

    @classmethod
    def pull(
        cls: type[B], api_client: ResourceAccessor | None, name: str, nsname: str = ""
    ) -> B:
        """Load an existing object from the cluster into a new builder.

        Raises BuilderError on a missing accessor, empty identity, or when
        the object does not exist. Other remote failures propagate as raised
        by the accessor. The returned builder's definition is a copy of the
        fetched object.
        """
        kind = cls.kind
        logger.debug(f"Pulling existing {kind.label} object {object_key(name, nsname)}")

        if api_client is None:
            logger.debug("The apiClient is empty")
            raise BuilderError(f"{kind.label} 'apiClient' cannot be empty")

        if not name:
            logger.debug(f"The name of the {kind.label} is empty")
            raise BuilderError(f"{kind.label} 'name' cannot be empty")

        if kind.namespaced and not nsname:
            logger.debug(f"The namespace of the {kind.label} is empty")
            raise BuilderError(f"{kind.label} 'nsname' cannot be empty")

        builder = cls(api_client, CustomResource.for_kind(kind, name, nsname))

        try:
            builder.object = builder.get()
        except ResourceNotFoundError as e:
            raise BuilderError(builder._absent_message()) from e

        builder.definition = copy.deepcopy(builder.object)
        return builder

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """Raise the BuilderValidationError this builder currently fails, if any."""
        validate(self, self.kind.kind)

    def is_valid(self) -> bool:
        try:
            self.validate()
        except BuilderValidationError:
            return False
        return True

    def _absent_message(self) -> str:
        label = self.kind.label
        if self.kind.namespaced:
            return (
                f"{label} object {self.definition.name} does not exist "
                f"in namespace {self.definition.namespace}"
            )
        return f"{label} object {self.definition.name} does not exist"

    @contextmanager
    def _track(self, operation: str) -> Iterator[None]:
        status = "success"
        try:
            yield
        except Exception:
            status = "error"
            raise
        finally:
            BUILDER_OPERATIONS_TOTAL.labels(
                resource=self.kind.kind, operation=operation, status=status
            ).inc()

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def with_options(self: B, *options: Callable[[B], B] | None) -> B:
        """Apply caller-supplied mutation functions in order.

        An option signals a bad value by raising ValueError; its message
        becomes the deferred error and the remaining options are skipped.
        """
        if not self.is_valid():
            return self

        logger.debug(f"Setting {self.kind.label} additional options")

        builder = self
        for option in options:
            if option is None:
                continue
            try:
                builder = option(builder)
            except ValueError as e:
                logger.debug("Error occurred in mutation function")
                self.error_msg = str(e)
                return self

        return builder

    def with_label(self: B, key: str, value: str) -> B:
        """Add a metadata label to the definition."""
        if not self.is_valid():
            return self

        logger.debug(
            f"Labeling {self.kind.label} {self.definition.name} with {key}={value}"
        )

        if not key:
            logger.debug("The label key is empty")
            self.error_msg = "'key' cannot be empty"
            return self

        self.definition.metadata.labels[key] = value
        return self

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def exists(self) -> bool:
        """Check whether the object exists, refreshing ``object``.

        Never raises. An invalid builder reports False. Any remote failure
        other than a clean not-found counts as existing.
        """
        if not self.is_valid():
            return False

        logger.debug(
            f"Checking if {self.kind.label} "
            f"{object_key(self.definition.name, self.definition.namespace)} exists"
        )

        try:
            self.object = self.get()
        except ResourceNotFoundError:
            self.object = None
            return False
        except OperatorError as e:
            logger.debug(f"Existence of {self.kind.label} is unknown: {e}")
            self.object = None

        return True

    def get(self) -> CustomResource:
        """Fetch the object named by the definition. Accessor errors propagate unchanged."""
        self.validate()

        logger.debug(
            f"Getting existing {self.kind.label} "
            f"{object_key(self.definition.name, self.definition.namespace)}"
        )

        return self.api_client.get(
            self.kind, self.definition.name, self.definition.namespace
        )

    def create(self: B) -> B:
        """Create the object if it does not exist yet (create-if-absent)."""
        with self._track("create"):
            self.validate()

            logger.debug(
                f"Creating the {self.kind.label} "
                f"{object_key(self.definition.name, self.definition.namespace)}"
            )

            if not self.exists():
                self.api_client.create(self.kind, self.definition)
                self.object = copy.deepcopy(self.definition)

        return self

    def update(self: B) -> B:
        """Replace the remote object with the definition.

        Server-assigned identity fields are cleared from the definition first.
        The existence check refreshes ``object``, so an update of an absent
        object leaves ``object`` as None even if it held a snapshot before.
        """
        with self._track("update"):
            self.validate()

            logger.debug(
                f"Updating the {self.kind.label} "
                f"{object_key(self.definition.name, self.definition.namespace)}"
            )

            if not self.exists():
                raise BuilderError(self._absent_message())

            self.definition.metadata.creation_timestamp = None
            self.definition.metadata.resource_version = ""

            self.api_client.update(self.kind, self.definition)
            self.object = copy.deepcopy(self.definition)

        return self

    def delete(self) -> None:
        """Delete the remote object.

        Deleting an absent object follows the kind's DeleteAbsentPolicy.
        """
        with self._track("delete"):
            self.validate()

            label = self.kind.label
            logger.debug(
                f"Deleting the {label} "
                f"{object_key(self.definition.name, self.definition.namespace)}"
            )

            if not self.exists():
                if self.kind.delete_absent is DeleteAbsentPolicy.IGNORE:
                    logger.debug(f"{label} {self.definition.name} does not exist")
                    return
                raise BuilderError(f"{label} cannot be deleted because it does not exist")

            try:
                self.api_client.delete(self.kind, self.definition)
            except OperatorError as e:
                raise RemoteAPIError(f"cannot delete {label}: {e}") from e

            self.object = None

    # -------------------------------------------------------------------------
    # Observed state
    # -------------------------------------------------------------------------

    def discover(self) -> CustomResource:
        """Refresh ``object`` from the cluster and return it.

        Accessor errors, including ResourceNotFoundError, propagate unchanged
        and leave ``object`` as None.
        """
        self.validate()

        try:
            self.object = self.get()
        except OperatorError:
            self.object = None
            raise

        return self.object

    def _observed(self) -> CustomResource:
        """Like discover(), but an absent object raises the "does not exist" BuilderError."""
        try:
            return self.discover()
        except ResourceNotFoundError as e:
            raise BuilderError(self._absent_message()) from e
