from types import TracebackType
from typing import Any

from more_itertools import first

from .auth.oauth import TokenRefresher
from .auth.store import BoundCredentials
from .auth.types import Credentials, CredentialStore
from .client import SalesforceClient
from .config import RelayConfig
from .exceptions import (
    CreateFailed,
    DeleteFailed,
    ResponseShapeError,
    UpdateFailed,
    ValidationError,
)
from .executor import RemoteCallExecutor
from .formatting import quote_soql_like_prefix, quote_soql_value
from .logger import getLogger
from .models import ApexTriggerRecord, Contact, GeneratedObject
from . import templates

LOGGER = getLogger("operations")

CONTACTS_QUERY = f"SELECT {', '.join(Contact.FIELDS)} FROM Contact"
TRIGGERS_QUERY = (
    "SELECT Id, Name, Body FROM ApexTrigger WHERE Name LIKE "
    + quote_soql_like_prefix(templates.TRIGGER_NAME_PREFIX)
)
WEBHOOK_CLASS_QUERY = "SELECT Id FROM ApexClass WHERE Name = " + quote_soql_value(
    templates.WEBHOOK_CLASS_NAME
)

# position of the entity in "trigger <name> on <entity> (<events>) {"
TARGET_ENTITY_TOKEN = 3


def parse_generated_object(record: ApexTriggerRecord) -> GeneratedObject:
    """Rebuild a webhook from its deployed trigger."""
    tokens = record.body.split(" ")
    if len(tokens) <= TARGET_ENTITY_TOKEN:
        raise ResponseShapeError(
            "ApexTrigger", f"body of {record.name} is too short to name its entity"
        )
    return GeneratedObject(
        name=record.name.removeprefix(templates.TRIGGER_NAME_PREFIX),
        target_entity=tokens[TARGET_ENTITY_TOKEN],
        url=templates.webhook_url(record.body),
        remote_id=record.id,
        events=templates.trigger_events(record.body),
    )


class RelayOperations:
    """
    Contact and webhook operations for one Salesforce user.

    Each operation is a unit of work run through the ``RemoteCallExecutor``,
    so an expired access token is refreshed and the operation retried once.
    The ``SalesforceClient`` may be shared with other principals; each call
    carries its own credentials.
    """

    def __init__(
        self,
        executor: RemoteCallExecutor,
        client: SalesforceClient,
        config: RelayConfig,
    ):
        self.executor = executor
        self.client = client
        self.config = config
        self._owned: list[Any] = []

    @classmethod
    def for_user(
        cls,
        config: RelayConfig,
        store: CredentialStore,
        user_id: str,
        refresher: TokenRefresher | None = None,
        client: SalesforceClient | None = None,
    ) -> "RelayOperations":
        owned = []
        if refresher is None:
            refresher = TokenRefresher(config)
            owned.append(refresher)
        if client is None:
            client = SalesforceClient(config)
            owned.append(client)
        executor = RemoteCallExecutor(
            BoundCredentials(store, user_id), refresher, config.client_id
        )
        operations = cls(executor, client, config)
        operations._owned = owned
        return operations

    def close(self):
        for resource in self._owned:
            resource.close()
        self._owned = []

    def __enter__(self):
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    def get_contacts(self) -> list[Contact]:
        def get_contacts(credentials: Credentials) -> list[Contact]:
            result = self.client.query(credentials, CONTACTS_QUERY)
            return [Contact.from_record(record) for record in result.records]

        return self.executor.execute(get_contacts)

    def update_contact(self, contact: Contact) -> None:
        if not contact.id:
            raise ValidationError("id", "is required to update a contact")
        body = contact.update_body()

        def update_contact(credentials: Credentials) -> None:
            result = self.client.update_record(credentials, "Contact", contact.id, body)
            if not result.success:
                raise UpdateFailed("Contact", contact.id, result.errors)

        self.executor.execute(update_contact)
        LOGGER.info("Updated contact %s", contact.id)

    def list_generated_objects(self) -> list[GeneratedObject]:
        def list_generated_objects(credentials: Credentials) -> list[GeneratedObject]:
            result = self.client.query(credentials, TRIGGERS_QUERY, tooling=True)
            return [
                parse_generated_object(ApexTriggerRecord.from_record(record))
                for record in result.records
            ]

        return self.executor.execute(list_generated_objects)

    def create_generated_objects(self, descriptor: GeneratedObject) -> GeneratedObject:
        """
        Deploy the shared webhook class, if the org lacks it, and the
        descriptor's trigger. Returns the descriptor with ``remote_id`` set
        to the new trigger's id.

        The class is created after a plain existence check. Two concurrent
        calls for a fresh org can both see it missing; the second create is
        then rejected by Salesforce as a duplicate name and surfaces as
        ``CreateFailed``.
        """
        trigger_body = templates.render_trigger(
            descriptor.name, descriptor.target_entity, descriptor.url, descriptor.events
        )
        api_version = self.config.api_version_number

        def create_generated_objects(credentials: Credentials) -> str:
            client = self.client

            existing = client.query(credentials, WEBHOOK_CLASS_QUERY, tooling=True)
            if first(existing.records, None) is None:
                result = client.create_record(
                    credentials,
                    "ApexClass",
                    {
                        "ApiVersion": api_version,
                        "Body": templates.render_webhook_class(),
                        "Name": templates.WEBHOOK_CLASS_NAME,
                    },
                    tooling=True,
                )
                if not result.success:
                    raise CreateFailed("ApexClass", errors=result.errors)
                LOGGER.info("Created %s class %s", templates.WEBHOOK_CLASS_NAME, result.id)

            result = client.create_record(
                credentials,
                "ApexTrigger",
                {
                    "ApiVersion": api_version,
                    "Body": trigger_body,
                    "Name": templates.trigger_name(descriptor.name),
                    "TableEnumOrId": descriptor.target_entity,
                },
                tooling=True,
            )
            if not result.success or not result.id:
                raise CreateFailed("ApexTrigger", errors=result.errors)
            return result.id

        trigger_id = self.executor.execute(create_generated_objects)
        LOGGER.info(
            "Created webhook %s on %s (%s)",
            descriptor.name,
            descriptor.target_entity,
            trigger_id,
        )
        return descriptor._replace(remote_id=trigger_id)

    def delete_generated_object(self, descriptor: GeneratedObject) -> None:
        if not descriptor.remote_id:
            raise ValidationError("remote_id", "is required to delete a webhook")
        remote_id = descriptor.remote_id

        def delete_generated_object(credentials: Credentials) -> None:
            if not self.client.delete_record(
                credentials, "ApexTrigger", remote_id, tooling=True
            ):
                raise DeleteFailed("ApexTrigger", remote_id)

        self.executor.execute(delete_generated_object)
        LOGGER.info("Deleted webhook %s (%s)", descriptor.name, remote_id)
