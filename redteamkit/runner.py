"""Lifecycle of an attack technique: warm-up, detonation, revert and clean-up."""

from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Mapping, Optional, Protocol

from redteamkit.state import FileSystemStateManager, default_state_manager
from redteamkit.technique import AttackTechnique, AttackTechniqueState

__all__ = [
    "DETONATION_ID_ENV_VAR",
    "TERRAFORM_VERSION",
    "RunnerError",
    "TerraformManager",
    "Runner",
    "terraform_error_message",
    "correlation_id_from_env",
    "parse_terraform_outputs",
]

logger = logging.getLogger(__name__)

DETONATION_ID_ENV_VAR = "STRATUS_RED_TEAM_DETONATION_ID"
TERRAFORM_VERSION = "1.1.2"

_MISSING_REGION_MESSAGE = 'The argument "region" is required, but no definition was found'


class RunnerError(Exception):
    """A lifecycle operation on an attack technique failed."""


class TerraformManager(Protocol):
    """Applies and destroys the Terraform prerequisites of a technique."""

    def init_and_apply(self, directory: str) -> dict[str, str]:
        """Initialize and apply the Terraform code in ``directory``; return its outputs."""
        ...

    def destroy(self, directory: str) -> None:
        """Destroy the resources created from ``directory``."""
        ...


def terraform_error_message(error: BaseException | str) -> str:
    """Return a friendlier message for a Terraform failure."""
    message = str(error)
    if _MISSING_REGION_MESSAGE in message:
        return (
            "unable to create attack technique prerequisites. Ensure you are authenticated against AWS "
            "and have the right permissions to run Stratus Red Team.\n"
            "Stratus Red Team will display below the error that Terraform returned:\n" + message
        )
    return message


def correlation_id_from_env() -> uuid.UUID:
    """Return the detonation ID from the environment, or a fresh random one."""
    detonation_id = os.environ.get(DETONATION_ID_ENV_VAR, "")
    if detonation_id:
        logger.info("%s is set, using it as the correlation ID", DETONATION_ID_ENV_VAR)
        try:
            return uuid.UUID(detonation_id)
        except ValueError as exc:
            logger.info(
                "%s is not a valid UUID, falling back to a randomly-generated one: %s",
                DETONATION_ID_ENV_VAR,
                exc,
            )
    return uuid.uuid4()


def parse_terraform_outputs(raw_outputs: Mapping[str, str | bytes]) -> dict[str, str]:
    """Turn raw JSON-encoded Terraform string outputs into plain strings."""
    outputs = {}
    for name, raw_value in raw_outputs.items():
        value = raw_value.decode() if isinstance(raw_value, bytes) else raw_value
        # Terraform wraps string values in quotes
        outputs[name] = value[1:-1]
    return outputs


class Runner:
    """Drives one attack technique through its lifecycle."""

    def __init__(
        self,
        technique: AttackTechnique,
        state_manager: Optional[FileSystemStateManager] = None,
        terraform_manager: Optional[TerraformManager] = None,
        force: bool = False,
        correlation_id: Optional[uuid.UUID] = None,
        provider_factory: Any = None,
    ) -> None:
        self.technique = technique
        self.state_manager = state_manager if state_manager is not None else default_state_manager(technique)
        self.terraform_manager = terraform_manager
        self.force = force
        self.correlation_id = correlation_id if correlation_id is not None else correlation_id_from_env()
        self.provider_factory = provider_factory
        self.terraform_dir = os.path.join(self.state_manager.root_directory, technique.id)
        self._state = self.state_manager.read_technique_state() or AttackTechniqueState.COLD

    @property
    def state(self) -> AttackTechniqueState:
        """The technique's current lifecycle state."""
        return self._state

    @property
    def unique_execution_id(self) -> str:
        """An identifier unique to this runner."""
        return str(self.correlation_id)

    def _terraform(self) -> TerraformManager:
        if self.terraform_manager is None:
            raise RunnerError("no Terraform manager configured for " + self.technique.id)
        return self.terraform_manager

    def _set_state(self, state: AttackTechniqueState) -> None:
        try:
            self.state_manager.write_technique_state(state)
        except Exception as exc:
            logger.warning("Warning: unable to set technique state: %s", exc)
        self._state = state

    def warm_up(self) -> dict[str, str]:
        """Spin up the technique's prerequisites and return their outputs."""
        if self.technique.prerequisites_terraform_code is None:
            return {}

        try:
            self.state_manager.extract_technique()
        except Exception as exc:
            raise RunnerError(f"unable to extract Terraform file: {exc}") from exc

        will_warm_up = True
        if self._state == AttackTechniqueState.WARM and not self.force:
            logger.info("Not warming up - %s is already warm. Use --force to force", self.technique.id)
            will_warm_up = False
        if self._state == AttackTechniqueState.DETONATED:
            logger.info(
                "%s has been detonated but not cleaned up, not warming up as it should be warm already.",
                self.technique.id,
            )
            will_warm_up = False

        if not will_warm_up:
            return self.state_manager.read_terraform_outputs()

        terraform = self._terraform()
        logger.info("Warming up %s", self.technique.id)
        try:
            outputs = terraform.init_and_apply(self.terraform_dir)
        except BaseException as exc:
            logger.info("Error during warm up. Cleaning up technique prerequisites with terraform destroy")
            try:
                terraform.destroy(self.terraform_dir)
            except Exception:
                pass
            if not isinstance(exc, Exception):
                raise
            raise RunnerError(
                "unable to run terraform apply on prerequisite: " + terraform_error_message(exc)
            ) from exc

        write_error: Optional[Exception] = None
        try:
            self.state_manager.write_terraform_outputs(outputs)
        except Exception as exc:
            write_error = exc
        self._set_state(AttackTechniqueState.WARM)

        display = outputs.get("display")
        if display is not None:
            logger.info(display.replace("\\n", "\n"))

        if write_error is not None:
            raise RunnerError(f"unable to persist Terraform outputs: {write_error}") from write_error
        return outputs

    def detonate(self) -> None:
        """Detonate the technique, warming it up first when needed."""
        will_warm_up = True
        if self._state == AttackTechniqueState.DETONATED:
            if not self.technique.is_idempotent and not self.force:
                raise RunnerError(
                    f"{self.technique.id} has already been detonated and is not idempotent. "
                    "Revert it with 'stratus revert' before detonating it again, or use --force"
                )
            will_warm_up = False

        if self.technique.is_slow:
            logger.info("Note: This is a slow attack technique, it might take a long time to warm up or detonate")

        outputs = self.warm_up() if will_warm_up else self.state_manager.read_terraform_outputs()

        if self.technique.detonate is None:
            raise RunnerError(f"{self.technique.id} has no detonation function")
        try:
            self.technique.detonate(outputs, self.provider_factory)
        except Exception as exc:
            raise RunnerError(
                f"Error while detonating attack technique {self.technique.id}: {exc}"
            ) from exc
        self._set_state(AttackTechniqueState.DETONATED)

    def revert(self) -> None:
        """Undo the side effects of a detonation."""
        if self._state != AttackTechniqueState.DETONATED and not self.force:
            raise RunnerError(
                f"{self.technique.id} is not in DETONATED state and should not need to be reverted, "
                "use --force to force"
            )

        try:
            outputs = self.state_manager.read_terraform_outputs()
        except Exception as exc:
            raise RunnerError(f"unable to retrieve outputs of {self.technique.id}: {exc}") from exc

        logger.info("Reverting detonation of technique %s", self.technique.id)
        if self.technique.revert is not None:
            try:
                self.technique.revert(outputs, self.provider_factory)
            except Exception as exc:
                raise RunnerError(f"unable to revert detonation of {self.technique.id}: {exc}") from exc

        self._set_state(AttackTechniqueState.WARM)

    def clean_up(self) -> None:
        """Revert any detonation and destroy the technique's prerequisites."""
        if self._state == AttackTechniqueState.COLD and not self.force:
            raise RunnerError(
                f"{self.technique.id} is already COLD and should already be clean, use --force to force cleanup"
            )

        logger.info("Cleaning up %s", self.technique.id)

        if self.technique.revert is not None and self._state == AttackTechniqueState.DETONATED:
            try:
                self.revert()
            except RunnerError as exc:
                if not self.force:
                    raise RunnerError(
                        f"unable to revert detonation of {self.technique.id} before cleaning up "
                        f"(use --force to cleanup anyway): {exc}"
                    ) from exc
                logger.warning(
                    "Warning: failed to revert detonation of %s. Ignoring and cleaning up anyway as --force was used.",
                    self.technique.id,
                )

        if self.technique.prerequisites_terraform_code is not None:
            logger.info("Cleaning up technique prerequisites with terraform destroy")
            terraform = self._terraform()
            try:
                terraform.destroy(self.terraform_dir)
            except Exception as exc:
                raise RunnerError(
                    "unable to cleanup TTP prerequisites: " + terraform_error_message(exc)
                ) from exc

        self._set_state(AttackTechniqueState.COLD)

        try:
            self.state_manager.cleanup_technique()
        except Exception as exc:
            raise RunnerError(f"unable to remove technique directory {self.terraform_dir}: {exc}") from exc