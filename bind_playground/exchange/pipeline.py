"""
The BIND exchange pipeline.

    validate -> sign -> encrypt -> prove -> submit -> link

- validate: advisory structural warnings, never blocks
- sign:     ES256 JWS over the Bundle with iss/iat claims
- encrypt:  dir/A256GCM JWE under a fresh random key
- prove:    ES256 JWT binding the signer to sha256(JWE)
- submit:   POST to the Exchange service
- link:     bindx:// link carrying the content key (never sent to the server)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from bind_playground.exchange.client import ExchangeClient
from bind_playground.exchange.crypto import (
    build_bindx_link,
    create_proof_jwt,
    encrypt_jws,
    sign_bundle,
)
from bind_playground.exchange.dag import DAG, TaskStatus
from bind_playground.exchange.keys import KeyPair
from bind_playground.schemas.exchange import CreateExchangeRequest, ExchangeResponse
from bind_playground.schemas.registry import SchemaRegistry
from bind_playground.services.validation import ValidationWarning, validate_bundle

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


class PipelineInputError(ValueError):
    """Raised when the pipeline is started without what signing needs."""


# ---------------------------------------------------------------------------
# Individual pipeline stages (each receives and returns a context dict)
# ---------------------------------------------------------------------------


def validate(context: dict[str, Any]) -> dict[str, Any]:
    warnings = validate_bundle(context["bundle"], context["registry"])
    if warnings:
        logger.info("Bundle has %d validation warning(s); signing anyway", len(warnings))
    return {"warnings": warnings}


def sign(context: dict[str, Any]) -> dict[str, Any]:
    key_pair: KeyPair | None = context.get("key_pair")
    issuer = context.get("issuer") or ""
    if key_pair is None:
        raise PipelineInputError("No signing key loaded")
    if not issuer.strip():
        raise PipelineInputError("Issuer is required to sign")

    jws = sign_bundle(context["bundle"], key_pair.private_key, key_pair.kid, issuer)
    logger.info("Signed Bundle with key %s as %s", key_pair.kid, issuer)
    return {"jws": jws}


def encrypt(context: dict[str, Any]) -> dict[str, Any]:
    jwe, content_key = encrypt_jws(context["jws"])
    logger.info("Encrypted JWS (%d bytes of JWE)", len(jwe))
    return {"jwe": jwe, "content_key": content_key}


def prove(context: dict[str, Any]) -> dict[str, Any]:
    key_pair: KeyPair = context["key_pair"]
    proof = create_proof_jwt(context["jwe"], key_pair.private_key, key_pair.kid, context["issuer"])
    return {"proof": proof}


async def submit(context: dict[str, Any]) -> dict[str, Any]:
    client: ExchangeClient = context["client"]
    expiry_hours = context.get("expiry_hours")
    request = CreateExchangeRequest(
        payload=context["jwe"],
        proof=context.get("proof"),
        passcode=context.get("passcode") or None,
        label=context.get("label") or None,
        exp=int(expiry_hours * SECONDS_PER_HOUR) if expiry_hours and expiry_hours > 0 else None,
    )
    response = await client.create_exchange(request)
    return {"response": response}


def link(context: dict[str, Any]) -> dict[str, Any]:
    response: ExchangeResponse = context["response"]
    bindx = build_bindx_link(
        response.url,
        context["content_key"],
        response.exp,
        response.flag,
        context.get("label") or None,
    )
    return {"link": bindx}


# ---------------------------------------------------------------------------
# Pipeline factory
# ---------------------------------------------------------------------------


def build_exchange_pipeline(submit_to_exchange: bool = True) -> DAG:
    """Construct the exchange DAG; without submission it stops after the proof."""
    dag = DAG("bind_exchange")
    dag.add_task("validate", validate)
    dag.add_task("sign", sign, depends_on=["validate"])
    dag.add_task("encrypt", encrypt, depends_on=["sign"])
    dag.add_task("prove", prove, depends_on=["encrypt"])
    if submit_to_exchange:
        dag.add_task("submit", submit, depends_on=["prove"])
        dag.add_task("link", link, depends_on=["submit"])
    return dag


@dataclass
class ExchangeOutcome:
    status: str
    warnings: list[ValidationWarning] = field(default_factory=list)
    jws: str | None = None
    jwe: str | None = None
    proof: str | None = None
    content_key: bytes | None = None
    response: ExchangeResponse | None = None
    link: str | None = None
    failed_stage: str | None = None
    error: str | None = None
    exception: BaseException | None = None
    summary: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "completed"


async def run_exchange(
    bundle: dict[str, Any],
    key_pair: KeyPair | None,
    issuer: str,
    *,
    registry: SchemaRegistry,
    client: ExchangeClient | None = None,
    label: str | None = None,
    passcode: str | None = None,
    expiry_hours: float | None = None,
    submit_to_exchange: bool = True,
) -> ExchangeOutcome:
    """Run the pipeline and collect every artifact the completed stages produced."""
    if submit_to_exchange and client is None:
        raise ValueError("An ExchangeClient is required to submit")

    pipeline = build_exchange_pipeline(submit_to_exchange)
    summary = await pipeline.run(
        initial_context={
            "bundle": bundle,
            "registry": registry,
            "key_pair": key_pair,
            "issuer": issuer,
            "client": client,
            "label": label,
            "passcode": passcode,
            "expiry_hours": expiry_hours,
        }
    )

    artifacts: dict[str, Any] = {}
    for task in pipeline.tasks.values():
        if task.status == TaskStatus.SUCCESS:
            artifacts.update(task.result)

    outcome = ExchangeOutcome(status=summary["status"], summary=summary)
    failed = pipeline.failed_task()
    if failed is not None:
        outcome.failed_stage = failed.name
        outcome.error = failed.error
        outcome.exception = failed.exception

    outcome.warnings = artifacts.get("warnings", [])
    outcome.jws = artifacts.get("jws")
    outcome.jwe = artifacts.get("jwe")
    outcome.proof = artifacts.get("proof")
    outcome.content_key = artifacts.get("content_key")
    outcome.response = artifacts.get("response")
    outcome.link = artifacts.get("link")
    return outcome
