"""
Example: Basic Salesforce usage with sfdc_adapter
=================================================

This example shows how to query and mutate records with sfdc_adapter.
"""

import logging

from sfdc_adapter import Connection, CreateError


def example_basic_query():
    """Basic SOQL query example."""

    with Connection(
        "user%40example.com",
        "PASSWORD+SECURITY_TOKEN",
        "enterprise.wsdl",
        "/tmp/sfdc_api",
    ) as conn:
        # Discover what's available
        print("Account fields:", conn.list_fields("Account"))

        # First page only
        page = conn.query("SELECT Id, Name FROM Account LIMIT 50")
        print(f"Fetched {len(page.records)} of {page.size} accounts")

        # Every page, following the query locator
        contacts = conn.query_all("SELECT Id, FirstName, LastName FROM Contact", max_pages=5)
        print(f"Found {len(contacts)} contacts")


def example_mutations():
    """Creating, updating and deleting with logical column names."""

    # Reads from environment variables: SF_USERNAME, SF_PASSWORD,
    # SF_WSDL_PATH, SF_API_DIR, SF_ORGANIZATION_ID
    with Connection() as conn:
        acme = conn.make_object("Account", {"name": "Acme", "custom_region": "EMEA"})
        try:
            results = conn.create([acme])
        except CreateError as e:
            for index, result in e.failures:
                print(f"Item {index} failed: {result.errors}")
            return

        account_id = results[0].id

        # An empty string clears the field instead of leaving it untouched
        conn.update([conn.make_object("Account", {"fax": ""}, id=account_id)])
        conn.delete([account_id])


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)

    # Uncomment the example you want to run
    # example_basic_query()
    # example_mutations()

    print("Set up your environment variables and uncomment an example to run.")
    print("Required: SF_USERNAME, SF_PASSWORD, SF_WSDL_PATH, SF_API_DIR")
