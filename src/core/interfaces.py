"""
Core - Interfaces et modèles de configuration

Contrats du module Core: chargement configuration, validation des
tables de règles et opérations cryptographiques.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from src.logging.interfaces import LogLevel


# ══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ══════════════════════════════════════════════════════════════════════════════


class DetectionSettings(BaseModel):
    """Paramètres du ledger de tentatives et de l'analyse de patterns."""

    window_seconds: float = Field(default=300.0, gt=0)
    retention_multiplier: float = Field(default=2.0, ge=1)
    sweep_interval_seconds: float = Field(default=60.0, ge=0)
    min_attempts_for_pattern: int = Field(default=3, ge=1)
    brute_force_frequency: float = Field(default=0.5, gt=0)  # tentatives / seconde
    distributed_source_threshold: int = Field(default=2, ge=1)
    warning_threshold: int = Field(default=3, ge=1)
    critical_threshold: int = Field(default=5, ge=1)
    brute_force_confidence: float = Field(default=0.9, gt=0, le=1)
    credential_stuffing_confidence: float = Field(default=0.85, gt=0, le=1)
    password_spray_confidence: float = Field(default=0.8, gt=0, le=1)

    @property
    def window_minutes(self) -> float:
        return self.window_seconds / 60

    @property
    def retention_seconds(self) -> float:
        return self.window_seconds * self.retention_multiplier


class LockSettings(BaseModel):
    """Paramètres du verrouillage de comptes."""

    lock_duration_hours: float = Field(default=24.0, gt=0)
    recent_activity_minutes: int = Field(default=10, gt=0)


class EnrichmentSettings(BaseModel):
    """Paramètres du service optionnel d'enrichissement des recommandations."""

    enabled: bool = False
    timeout_seconds: float = Field(default=10.0, gt=0, le=60)


class AuditSettings(BaseModel):
    """Paramètres du journal d'audit en mémoire."""

    max_events: int = Field(default=10000, gt=0)


class LoggingSettings(BaseModel):
    """Paramètres des loggers de composants."""

    level: str = "INFO"
    mask_identities: bool = True
    max_entries: int = Field(default=1000, gt=0)

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        return LogLevel.from_name(value).value


class CoreSettings(BaseModel):
    """Configuration complète du noyau détection & réponse."""

    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    lock: LockSettings = Field(default_factory=LockSettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)
    attack_patterns_path: Optional[Path] = None
    recommendations_path: Optional[Path] = None


# ══════════════════════════════════════════════════════════════════════════════
# VALIDATION
# ══════════════════════════════════════════════════════════════════════════════


class ValidationSeverity(Enum):
    BLOCKING = "blocking"
    WARNING = "warning"
    INFO = "info"


class ValidationError(BaseModel):
    """Erreur de validation d'une table de règles."""

    rule_id: str
    message: str
    location: str
    value: Optional[str] = None
    severity: ValidationSeverity = ValidationSeverity.BLOCKING


class ValidationResult(BaseModel):
    """Résultat de validation d'une table de règles."""

    valid: bool
    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []
    checked_at: datetime


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IConfigLoader(ABC):
    """Charge la configuration du noyau depuis un fichier YAML."""

    @abstractmethod
    def load(self, path: Path) -> CoreSettings:
        """
        Charge et valide un fichier de configuration.

        Args:
            path: Chemin du fichier YAML

        Returns:
            Configuration validée

        Raises:
            ConfigIntegrityError: Fichier absent ou contenu invalide
        """
        pass

    @abstractmethod
    def load_default(self) -> CoreSettings:
        """Retourne la configuration par défaut."""
        pass


class IRuleTableValidator(ABC):
    """Valide une table de règles brute (avant parsing)."""

    @abstractmethod
    def validate(self, table: dict[str, Any]) -> ValidationResult:
        """
        Valide une table contre toutes les règles de structure.
        Retourne TOUTES les erreurs (pas fail-fast).
        """
        pass


class ICryptoProvider(ABC):
    """Opérations cryptographiques (hash et signature)."""

    @abstractmethod
    def sign(self, data: bytes, key_id: str) -> bytes:
        """
        Signe des données avec ECDSA-P384.

        Args:
            data: Données à signer
            key_id: ID de la clé

        Returns:
            Signature DER-encoded
        """
        pass

    @abstractmethod
    def verify_signature(self, data: bytes, signature: bytes, key_id: str) -> bool:
        """Vérifie une signature ECDSA-P384."""
        pass

    @abstractmethod
    def hash(self, data: bytes) -> str:
        """
        Calcule hash SHA-384.

        Returns:
            Hash hex string (96 caractères)
        """
        pass
