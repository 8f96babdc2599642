"""
Unit tests for the VEX client: statement creation and document merging.
"""

import copy
import re

import pytest

from vexdoc_mcp_server.vex.client import CreateInput, MergeInput, VexClient
from vexdoc_mcp_server.vex.document import CONTEXT, Status, VEXDocument, parse
from vexdoc_mcp_server.vex.errors import VexParseError, VexStatementError, VexValidationError
from vexdoc_mcp_server.vex.merge import group_statements


def create_input(**overrides):
    fields = {
        "product": "pkg:npm/lodash@4.17.21",
        "vulnerability": "CVE-2023-1234",
        "status": "fixed",
    }
    fields.update(overrides)
    return CreateInput(**fields)


def summary(document):
    """(vulnerability, product, status) triples of a document's statements."""
    return [
        (s.vulnerability.name, s.products[0].component_id, s.status.value)
        for s in document.statements
    ]


class TestCreateStatement:
    """Test single statement document creation."""

    def test_create_fixed(self, vex_client):
        document = vex_client.create_statement(create_input())

        assert document.context == CONTEXT
        assert re.fullmatch(r"vex-\d+-[0-9a-f]{8}", document.id)
        assert document.author == "Test Security Team"
        assert document.version == 1
        assert document.timestamp is not None
        assert document.timestamp.tzinfo is not None
        assert len(document.statements) == 1

        statement = document.statements[0]
        assert statement.vulnerability.name == "CVE-2023-1234"
        assert statement.products[0].id == "pkg:npm/lodash@4.17.21"
        assert statement.status == Status.FIXED

    def test_create_not_affected_with_justification(self, vex_client):
        document = vex_client.create_statement(
            create_input(status="not_affected", justification="component_not_present")
        )

        assert document.statements[0].justification == "component_not_present"

    def test_create_affected_with_action(self, vex_client):
        document = vex_client.create_statement(
            create_input(status="affected", action_statement="Upgrade to 4.17.22")
        )

        assert document.statements[0].action_statement == "Upgrade to 4.17.22"

    @pytest.mark.parametrize(
        "fields",
        [
            {"status": "fixed"},
            {"status": "under_investigation"},
            {"status": "not_affected", "justification": "component_not_present"},
            {"status": "affected", "action_statement": "Upgrade to 4.17.22"},
        ],
    )
    def test_created_document_parses_back(self, vex_client, fields):
        document = vex_client.create_statement(create_input(**fields))

        parsed = parse(document.to_json())

        assert parsed.id == document.id
        assert len(parsed.statements) == 1
        statement = parsed.statements[0]
        assert statement.status.value == fields["status"]
        assert statement.justification == fields.get("justification")
        assert statement.action_statement == fields.get("action_statement")
        assert statement.products[0].id == "pkg:npm/lodash@4.17.21"
        statement.validate_statement()

    def test_explicit_author(self, vex_client):
        document = vex_client.create_statement(create_input(author="ACME PSIRT"))
        assert document.author == "ACME PSIRT"

    def test_default_author_when_unconfigured(self):
        document = VexClient().create_statement(create_input())
        assert document.author == "vexdoc-mcp-server"

    def test_ids_are_unique(self, vex_client):
        first = vex_client.create_statement(create_input())
        second = vex_client.create_statement(create_input())
        assert first.id != second.id

    def test_not_affected_without_justification(self, vex_client):
        with pytest.raises(VexStatementError) as exc_info:
            vex_client.create_statement(create_input(status="not_affected"))

        assert exc_info.value.message == (
            "statement validation failed: either justification or impact statement "
            'must be defined when using status "not_affected"'
        )

    def test_affected_without_action(self, vex_client):
        with pytest.raises(VexStatementError) as exc_info:
            vex_client.create_statement(create_input(status="affected"))

        assert exc_info.value.message.startswith("statement validation failed: ")

    def test_invalid_status(self, vex_client):
        with pytest.raises(VexStatementError) as exc_info:
            vex_client.create_statement(create_input(status="maybe"))

        assert exc_info.value.message == "invalid status: maybe"

    def test_invalid_justification(self, vex_client):
        with pytest.raises(VexStatementError) as exc_info:
            vex_client.create_statement(
                create_input(status="not_affected", justification="trust_me")
            )

        assert exc_info.value.message == "invalid justification: trust_me"

    @pytest.mark.parametrize("field", ["product", "vulnerability", "status"])
    def test_required_fields(self, vex_client, field):
        with pytest.raises(VexValidationError) as exc_info:
            vex_client.create_statement(create_input(**{field: ""}))

        assert exc_info.value.message == f"validation error: {field} is required"

    def test_dangerous_characters(self, vex_client):
        with pytest.raises(VexValidationError) as exc_info:
            vex_client.create_statement(create_input(product="pkg:npm/lodash; rm -rf /"))

        assert exc_info.value.message == (
            "validation error: product contains potentially dangerous characters"
        )

    def test_dangerous_characters_in_optional_field(self, vex_client):
        with pytest.raises(VexValidationError):
            vex_client.create_statement(
                create_input(status="affected", action_statement="run `upgrade`")
            )

    def test_product_too_long(self, vex_client):
        with pytest.raises(VexValidationError) as exc_info:
            vex_client.create_statement(create_input(product="p" * 1001))

        assert "product exceeds maximum length of 1000 characters" in exc_info.value.message

    def test_author_too_long(self, vex_client):
        with pytest.raises(VexValidationError) as exc_info:
            vex_client.create_statement(create_input(author="a" * 201))

        assert "author exceeds maximum length of 200 characters" in exc_info.value.message


class TestMergeDocuments:
    """Test merging of VEX documents."""

    def test_merge_resolves_conflicts(self, vex_client, sample_documents):
        merged = vex_client.merge_documents(MergeInput(documents=sample_documents))

        assert summary(merged) == [
            ("CVE-2023-1234", "pkg:npm/lodash@4.17.21", "fixed"),
            ("CVE-2023-5678", "pkg:npm/express@4.18.2", "not_affected"),
            ("CVE-2024-0001", "pkg:docker/nginx@1.20.1", "under_investigation"),
        ]

    def test_winning_statement_is_base(self, vex_client, sample_documents):
        merged = vex_client.merge_documents(MergeInput(documents=sample_documents))

        lodash = merged.statements[0]
        # The fixed statement carried no action statement
        assert lodash.action_statement is None

    def test_merge_is_order_independent(self, vex_client, sample_documents):
        forward = vex_client.merge_documents(MergeInput(documents=sample_documents))
        backward = vex_client.merge_documents(
            MergeInput(documents=list(reversed(copy.deepcopy(sample_documents))))
        )

        assert summary(forward) == summary(backward)

    @pytest.mark.parametrize(
        "statuses, expected",
        [
            (["affected", "fixed"], "fixed"),
            (["affected", "under_investigation"], "under_investigation"),
            (["under_investigation", "not_affected"], "not_affected"),
            (["not_affected", "fixed"], "fixed"),
        ],
    )
    def test_status_precedence(self, vex_client, make_document, make_statement, statuses, expected):
        extra = {
            "affected": {"action_statement": "Upgrade"},
            "not_affected": {"justification": "component_not_present"},
        }
        documents = [
            make_document(
                [make_statement("CVE-1", "pkg:npm/a@1", status, **extra.get(status, {}))],
                doc_id=f"doc-{index}",
            )
            for index, status in enumerate(statuses)
        ]

        merged = vex_client.merge_documents(MergeInput(documents=documents))

        assert [s.status.value for s in merged.statements] == [expected]

    def test_distinct_justifications_combined(self, vex_client, make_document, make_statement):
        documents = [
            make_document(
                [
                    make_statement(
                        "CVE-1", "pkg:npm/a@1", "not_affected", justification=justification
                    )
                ]
            )
            for justification in (
                "component_not_present",
                "vulnerable_code_not_present",
                "component_not_present",
            )
        ]

        merged = vex_client.merge_documents(MergeInput(documents=documents))

        assert merged.statements[0].justification == (
            "multiple justifications: component_not_present, vulnerable_code_not_present"
        )

    def test_single_justification_kept(self, vex_client, make_document, make_statement):
        documents = [
            make_document(
                [
                    make_statement(
                        "CVE-1", "pkg:npm/a@1", "not_affected", justification="component_not_present"
                    )
                ]
            ),
            make_document([make_statement("CVE-1", "pkg:npm/a@1", "under_investigation")]),
        ]

        merged = vex_client.merge_documents(MergeInput(documents=documents))

        assert merged.statements[0].status == Status.NOT_AFFECTED
        assert merged.statements[0].justification == "component_not_present"

    def test_multi_product_statements_split(self, vex_client, make_document, make_statement):
        shared = make_statement("CVE-1", "pkg:npm/a@1", "under_investigation")
        shared["products"].append({"@id": "pkg:npm/b@1"})
        documents = [
            make_document([shared]),
            make_document([make_statement("CVE-1", "pkg:npm/b@1", "fixed")]),
        ]

        merged = vex_client.merge_documents(MergeInput(documents=documents))

        assert summary(merged) == [
            ("CVE-1", "pkg:npm/a@1", "under_investigation"),
            ("CVE-1", "pkg:npm/b@1", "fixed"),
        ]

    def test_metadata_overrides(self, vex_client, sample_documents):
        merged = vex_client.merge_documents(
            MergeInput(
                documents=sample_documents,
                author="Release Team",
                author_role="Security Engineer",
                id="https://example.com/vex/merged-1",
            )
        )

        assert merged.id == "https://example.com/vex/merged-1"
        assert merged.author == "Release Team"
        assert merged.role == "Security Engineer"
        assert merged.version == 1
        assert merged.timestamp is not None

    def test_metadata_defaults(self, vex_client, sample_documents):
        merged = vex_client.merge_documents(MergeInput(documents=sample_documents))

        assert re.fullmatch(r"merged-vex-\d+-[0-9a-f]{8}", merged.id)
        assert merged.author == "Test Security Team"
        assert merged.role is None

    def test_product_filter(self, vex_client, sample_documents):
        merged = vex_client.merge_documents(
            MergeInput(documents=sample_documents, products=["pkg:npm/lodash@4.17.21"])
        )

        assert summary(merged) == [("CVE-2023-1234", "pkg:npm/lodash@4.17.21", "fixed")]

    def test_vulnerability_filter(self, vex_client, sample_documents):
        merged = vex_client.merge_documents(
            MergeInput(documents=sample_documents, vulnerabilities=["CVE-2024-0001"])
        )

        assert summary(merged) == [
            ("CVE-2024-0001", "pkg:docker/nginx@1.20.1", "under_investigation")
        ]

    def test_filters_combine(self, vex_client, sample_documents):
        merged = vex_client.merge_documents(
            MergeInput(
                documents=sample_documents,
                products=["pkg:npm/lodash@4.17.21"],
                vulnerabilities=["CVE-2024-0001"],
            )
        )

        assert merged.statements == []

    def test_blank_filter_entries_ignored(self, vex_client, sample_documents):
        merged = vex_client.merge_documents(
            MergeInput(documents=sample_documents, products=["", "   "])
        )

        assert len(merged.statements) == 3

    def test_too_few_documents(self, vex_client, vendor_document):
        with pytest.raises(VexValidationError) as exc_info:
            vex_client.merge_documents(MergeInput(documents=[vendor_document]))

        assert exc_info.value.message == (
            "validation error: at least 2 VEX documents are required for merging"
        )

    def test_maximum_documents(self, vex_client, vendor_document):
        documents = [copy.deepcopy(vendor_document) for _ in range(20)]

        merged = vex_client.merge_documents(MergeInput(documents=documents))

        assert len(merged.statements) == 2

    def test_too_many_documents(self, vex_client, vendor_document):
        documents = [copy.deepcopy(vendor_document) for _ in range(21)]

        with pytest.raises(VexValidationError) as exc_info:
            vex_client.merge_documents(MergeInput(documents=documents))

        assert exc_info.value.message == (
            "validation error: maximum of 20 documents can be merged at once"
        )

    def test_missing_context(self, vex_client, vendor_document, internal_document):
        del internal_document["@context"]

        with pytest.raises(VexValidationError) as exc_info:
            vex_client.merge_documents(
                MergeInput(documents=[vendor_document, internal_document])
            )

        assert exc_info.value.message == "document 2 must be a valid VEX document with @context"

    def test_missing_statements(self, vex_client, vendor_document, internal_document):
        del vendor_document["statements"]

        with pytest.raises(VexValidationError) as exc_info:
            vex_client.merge_documents(
                MergeInput(documents=[vendor_document, internal_document])
            )

        assert exc_info.value.message == (
            "document 1 must be a valid VEX document with statements"
        )

    def test_unparseable_document_aborts_merge(
        self, vex_client, vendor_document, make_document, make_statement
    ):
        broken = make_document([make_statement("CVE-1", "pkg:npm/a@1", "maybe")])

        with pytest.raises(VexParseError) as exc_info:
            vex_client.merge_documents(MergeInput(documents=[vendor_document, broken]))

        assert exc_info.value.message.startswith("failed to parse document 2: ")

    def test_dangerous_filter_entry(self, vex_client, sample_documents):
        with pytest.raises(VexValidationError) as exc_info:
            vex_client.merge_documents(
                MergeInput(documents=sample_documents, products=["pkg:npm/a@1", "$(id)"])
            )

        assert exc_info.value.message == (
            "validation error: products[1] contains potentially dangerous characters"
        )

    def test_id_length_limit(self, vex_client, sample_documents):
        vex_client.merge_documents(MergeInput(documents=sample_documents, id="i" * 500))

        with pytest.raises(VexValidationError):
            vex_client.merge_documents(MergeInput(documents=sample_documents, id="i" * 501))

    def test_inputs_not_mutated(self, vex_client, sample_documents):
        before = copy.deepcopy(sample_documents)

        vex_client.merge_documents(MergeInput(documents=sample_documents, author="Someone"))

        assert sample_documents == before


class TestGroupStatements:
    def test_groups_keep_first_seen_order(self, make_document, make_statement):
        first = VEXDocument.model_validate(
            make_document(
                [
                    make_statement("CVE-2", "pkg:npm/b@1", "fixed"),
                    make_statement("CVE-1", "pkg:npm/a@1", "under_investigation"),
                ]
            )
        )
        second = VEXDocument.model_validate(
            make_document(
                [
                    make_statement("CVE-1", "pkg:npm/a@1", "fixed"),
                    make_statement("CVE-3", "pkg:npm/c@1", "fixed"),
                ],
                doc_id="doc-2",
            )
        )

        groups = group_statements([first, second])

        assert type(groups) is dict
        assert list(groups) == [
            ("CVE-2", "pkg:npm/b@1"),
            ("CVE-1", "pkg:npm/a@1"),
            ("CVE-3", "pkg:npm/c@1"),
        ]
        assert [s.status.value for s in groups[("CVE-1", "pkg:npm/a@1")]] == [
            "under_investigation",
            "fixed",
        ]
