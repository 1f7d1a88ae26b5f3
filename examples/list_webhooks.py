import logging
import os

from action_relay import KeyValueCredentialStore, RelayConfig, RelayOperations, create_storage

logging.basicConfig(level=logging.INFO)

config = RelayConfig.from_env()
# CREDENTIAL_STORAGE_TYPE=redis reads the credentials saved at login
store = KeyValueCredentialStore(create_storage())
user_id = os.environ["SALESFORCE_USER_ID"]


def print_webhooks(operations: RelayOperations):
    for webhook in operations.list_generated_objects():
        print(
            webhook.name,
            webhook.target_entity,
            ", ".join(webhook.events),
            webhook.url,
            webhook.remote_id,
            sep=" | ",
        )


def print_contacts(operations: RelayOperations):
    contacts = operations.get_contacts()
    for contact in contacts:
        print(contact.id, contact.first_name, contact.last_name, contact.email, sep=" | ")
    print(len(contacts), "Contacts")


with store, RelayOperations.for_user(config, store, user_id) as operations:
    print_webhooks(operations)
    print_contacts(operations)
