"""
IAM policy document handling.

Components accept a policy either as a structured PolicyDocument or as raw
JSON text. Both forms are resolved once, at the component boundary, into a
plain dict in the AWS policy grammar (Version/Statement/Effect/...). That
dict is what gets handed to CloudFormation resources.
"""

import json
from typing import Any

from modinfra.exceptions import PolicyDocumentError
from modinfra.iam.types import (
    POLICY_VERSION,
    PolicyDocument,
    PolicyInput,
    PolicyStatement,
    Principal,
    TrustPolicyConfig,
)


def _principals_to_dict(principals: list[Principal]) -> dict[str, Any]:
    return {principal.type: principal.identifiers for principal in principals}


def _statement_to_dict(statement: PolicyStatement) -> dict[str, Any]:
    result: dict[str, Any] = {"Effect": statement.effect}

    if statement.sid:
        result["Sid"] = statement.sid
    result["Action"] = statement.actions
    if statement.resources is not None:
        result["Resource"] = statement.resources
    if statement.principals:
        result["Principal"] = _principals_to_dict(statement.principals)
    if statement.conditions:
        result["Condition"] = {op: dict(keys) for op, keys in statement.conditions.items()}
    if statement.not_actions is not None:
        result["NotAction"] = statement.not_actions
    if statement.not_resources is not None:
        result["NotResource"] = statement.not_resources
    if statement.not_principals:
        result["NotPrincipal"] = _principals_to_dict(statement.not_principals)

    return result


def policy_document_to_dict(document: PolicyDocument) -> dict[str, Any]:
    """Render a structured document in the AWS policy grammar."""
    return {
        "Version": document.version,
        "Statement": [_statement_to_dict(statement) for statement in document.statements],
    }


def policy_document_to_json(document: PolicyDocument) -> str:
    """Render a structured document as indented JSON text."""
    return json.dumps(policy_document_to_dict(document), indent=2)


def resolve_policy(policy: PolicyInput) -> dict[str, Any]:
    """
    Resolve either policy form into a policy dict.

    Raw text must parse to a JSON object; it is otherwise passed through
    untouched, so callers can use policy grammar this module does not model.

    Raises:
        PolicyDocumentError: If raw text is not valid JSON or not an object.
        TypeError: If `policy` is neither a PolicyDocument nor a str.
    """
    if isinstance(policy, PolicyDocument):
        return policy_document_to_dict(policy)

    if isinstance(policy, str):
        try:
            parsed = json.loads(policy)
        except json.JSONDecodeError as exc:
            raise PolicyDocumentError(f"Policy text is not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise PolicyDocumentError(
                f"Policy text must be a JSON object, got {type(parsed).__name__}"
            )
        return parsed

    raise TypeError(f"Expected PolicyDocument or str, got {type(policy).__name__}")


def _assume_conditions(config: TrustPolicyConfig) -> dict[str, dict[str, str]] | None:
    conditions: dict[str, dict[str, str]] = {}
    if config.require_mfa:
        conditions["Bool"] = {"aws:MultiFactorAuthPresent": "true"}
    if config.external_id:
        conditions["StringEquals"] = {"sts:ExternalId": config.external_id}
    return conditions or None


def create_trust_policy(config: TrustPolicyConfig) -> PolicyDocument:
    """
    Build the assume-role policy for a role.

    Statements are emitted in a fixed order: services, accounts, federated
    providers, SAML providers, OIDC providers, then custom statements. MFA
    and external-id conditions apply to the service and account statements.
    """
    statements: list[PolicyStatement] = []

    if config.services:
        statements.append(
            PolicyStatement(
                effect="Allow",
                actions="sts:AssumeRole",
                principals=[Principal(type="Service", identifiers=list(config.services))],
                conditions=_assume_conditions(config),
            )
        )

    if config.accounts:
        account_principals = [
            account if account.startswith("arn:") else f"arn:aws:iam::{account}:root"
            for account in config.accounts
        ]
        statements.append(
            PolicyStatement(
                effect="Allow",
                actions="sts:AssumeRole",
                principals=[Principal(type="AWS", identifiers=account_principals)],
                conditions=_assume_conditions(config),
            )
        )

    federated = [
        ("sts:AssumeRoleWithWebIdentity", config.federated_providers),
        ("sts:AssumeRoleWithSAML", config.saml_providers),
        ("sts:AssumeRoleWithWebIdentity", config.oidc_providers),
    ]
    for action, providers in federated:
        if providers:
            statements.append(
                PolicyStatement(
                    effect="Allow",
                    actions=action,
                    principals=[Principal(type="Federated", identifiers=list(providers))],
                )
            )

    if config.custom_statements:
        statements.extend(config.custom_statements)

    return PolicyDocument(statements=statements, version=POLICY_VERSION)
