"""
Core - Config Loader
Charge la configuration du noyau depuis un fichier YAML.
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from .interfaces import CoreSettings, IConfigLoader


class ConfigIntegrityError(Exception):
    """Erreur d'intégrité de configuration."""

    pass


class ConfigLoader(IConfigLoader):
    """
    Chargement des configurations depuis fichiers YAML.

    Example:
        settings = ConfigLoader().load(Path("config/core.yaml"))
        settings.detection.window_seconds  # 300.0
    """

    def load(self, path: Union[str, Path]) -> CoreSettings:
        """
        Charge et valide un fichier de configuration.

        Les chemins de tables de règles relatifs sont résolus par rapport
        au dossier du fichier chargé.

        Args:
            path: Chemin du fichier YAML

        Returns:
            Configuration validée

        Raises:
            ConfigIntegrityError: Si fichier inexistant ou structure invalide
        """
        config_file = Path(path)

        if not config_file.exists():
            raise ConfigIntegrityError(f"Configuration non trouvée: {config_file}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigIntegrityError(f"Erreur de parsing YAML: {e}")

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigIntegrityError("Configuration doit être un objet YAML")

        self._resolve_paths(raw, config_file.parent)

        try:
            return CoreSettings.model_validate(raw)
        except PydanticValidationError as e:
            raise ConfigIntegrityError(f"Configuration invalide: {e}")

    def load_default(self) -> CoreSettings:
        """Retourne la configuration par défaut (fenêtre 5 min, verrou 24h)."""
        return CoreSettings()

    def _resolve_paths(self, raw: Dict[str, Any], base_dir: Path) -> None:
        """Rend absolus les chemins de tables de règles."""
        for key in ("attack_patterns_path", "recommendations_path"):
            value = raw.get(key)
            if value and not Path(value).is_absolute():
                raw[key] = str(base_dir / value)
