"""
ERD test fixtures and configuration.

This module provides ERD documents and fixtures shared by the compiler
test modules. Documents that start with ``erDiagram`` on their first line
keep line numbers easy to reason about in assertions.
"""

import pytest

# =============================================================================
# Acceptance Documents
# =============================================================================

# Entity without a key, with a column named like the platform's primary name
NO_PRIMARY_KEY_ERD = 'erDiagram\n CUSTOMER { string name }'

# Many-to-many between two undeclared entities
MANY_TO_MANY_ERD = 'STUDENT }o--o{ COURSE : enrolled_in'

CONTACT_ERD = """erDiagram
    Contact {
        string email
        string phone
    }
"""

DUPLICATE_RELATIONSHIP_ERD = """erDiagram
    A {
        guid id PK
    }
    B {
        guid id PK
        guid a_id FK
    }
    A ||--o{ B : "has"
    A ||--o{ B : "has"
"""


# =============================================================================
# Feature Documents
# =============================================================================

CRM_ERD = """erDiagram
    CUSTOMER["Customer Account"] {
        guid customer_id PK
        string customer_name "Legal name"
        string email UK
        choice(active,inactive) state
        datetime createdon
    }
    ORDER {
        guid order_id PK
        guid customer_id FK
        money total_amount
        date order_date
    }
    PRODUCT {
        guid product_id PK
        string product_name
        decimal price
    }
    CUSTOMER ||--o{ ORDER : places
    ORDER }o--o{ PRODUCT : contains
"""

MALFORMED_ERD = """erDiagram
    GOOD {
        guid id PK
        string title
    }
    BROKEN {
        string "oops
        int count
    }
    GOOD ||--o{ OTHER : has
    this is not erd
"""

CYCLE_ERD = """erDiagram
    A {
        guid id PK
        guid b_id FK
    }
    B {
        guid id PK
        guid c_id FK
    }
    C {
        guid id PK
        guid a_id FK
    }
    A }o--|| B : needs
    B }o--|| C : needs
    C }o--|| A : needs
"""

RESERVED_COLUMNS_ERD = """erDiagram
    ACCOUNT {
        guid id PK
        string statecode
        string status
        datetime createdon
        datetime modifiedon
        choice() kind
    }
"""

NAMING_ERD = """erDiagram
    my-entity {
        guid id PK
        string first-name
    }
    B {
        guid id PK
    }
    my-entity ||--o{ B : owns
"""

KEYS_ERD = """erDiagram
    MULTI {
        guid a PK
        guid b PK
        string title
    }
    PROMOTE {
        int id
        string title
    }
    DUPCOLS {
        guid id PK
        string title
        string Title UK "Shown in lists"
    }
"""

SELF_REFERENCE_ERD = """erDiagram
    EMPLOYEE {
        guid id PK
        guid manager_id FK
    }
    EMPLOYEE ||--o{ EMPLOYEE : manages
"""

EMPTY_ERD = ""

COMMENT_ONLY_ERD = """erDiagram
    %% nothing here yet
"""

GARBAGE_ERD = "this is not an entity relationship diagram"

QUOTED_CHOICE_ERD = """erDiagram
    TICKET {
        guid id PK
        choice(open, "on hold", closed) state "Workflow state"
    }
"""

# Key-less entity (fixable) next to a block the parser skips
SYNTAX_AND_FIXABLE_ERD = """erDiagram
    A {
        string title
    }
    B {
        string "bad
    }
"""

# Parent name long enough that its foreign key hits the attribute name limit
LONG_PARENT_NAME = "P" * 49
LONG_PARENT_ERD = f"""erDiagram
    {LONG_PARENT_NAME} {{
        guid id PK
    }}
    C {{
        guid id PK
    }}
    {LONG_PARENT_NAME} ||--o{{ C : owns
"""


def chain_erd(length: int) -> str:
    """E0 <- E1 <- ... parent chain, entities declared deepest first."""
    lines = ["erDiagram"]
    for index in reversed(range(length)):
        fk = f"; guid e{index - 1}_id FK" if index else ""
        lines.append(f"    E{index} {{ guid id PK{fk} }}")
    for index in range(length - 1):
        lines.append(f"    E{index} ||--o{{ E{index + 1} : has")
    return "\n".join(lines) + "\n"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def no_primary_key_erd():
    return NO_PRIMARY_KEY_ERD


@pytest.fixture
def many_to_many_erd():
    return MANY_TO_MANY_ERD


@pytest.fixture
def contact_erd():
    return CONTACT_ERD


@pytest.fixture
def duplicate_relationship_erd():
    return DUPLICATE_RELATIONSHIP_ERD


@pytest.fixture
def crm_erd():
    """Three entities, a choice column, a system field and one many-to-many."""
    return CRM_ERD


@pytest.fixture
def malformed_erd():
    """One good block, one malformed block, a dangling relationship and junk."""
    return MALFORMED_ERD
