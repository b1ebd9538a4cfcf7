"""
Logging - Sensitive Masker

Masquage des secrets et, sur option, des identités de comptes
avant écriture des logs.
"""

from typing import Any, Dict, List, Optional

from .interfaces import ISensitiveMasker


class SensitiveMasker(ISensitiveMasker):
    """
    Masquage récursif des données sensibles.

    Example:
        masker = SensitiveMasker(mask_identities=True)
        masker.mask({"password": "x", "identity": "alice@corp.com"})
        # {"password": "***MASKED***", "identity": "a****@corp.com"}
    """

    def __init__(
        self,
        additional_patterns: Optional[List[str]] = None,
        mask_identities: bool = False,
    ) -> None:
        """
        Args:
            additional_patterns: Patterns supplémentaires à masquer
            mask_identities: Masquer partiellement les identités de comptes
        """
        self._patterns: List[str] = list(self.SENSITIVE_PATTERNS)
        self._mask_identities = mask_identities
        for pattern in additional_patterns or []:
            if pattern and pattern.lower() not in self._patterns:
                self._patterns.append(pattern.lower())

    @property
    def patterns(self) -> List[str]:
        """Retourne les patterns sensibles configurés."""
        return list(self._patterns)

    def mask(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Masque récursivement toutes les données sensibles.

        Comportement:
            - Clés contenant patterns sensibles → valeur masquée
            - Clés d'identité (si activé) → identité partiellement masquée
            - Valeurs dict → récursion
            - Valeurs list → masque chaque élément

        Args:
            data: Dictionnaire à masquer

        Returns:
            Copie avec données sensibles masquées
        """
        if not isinstance(data, dict):
            return data

        result: Dict[str, Any] = {}
        for key, value in data.items():
            if self.is_sensitive_key(key):
                result[key] = self.MASK_VALUE
            elif self._mask_identities and self._is_identity_key(key) and isinstance(value, str):
                result[key] = self.mask_identity(value)
            elif isinstance(value, dict):
                result[key] = self.mask(value)
            elif isinstance(value, list):
                result[key] = self._mask_list(value)
            else:
                result[key] = value
        return result

    def _mask_list(self, items: List[Any]) -> List[Any]:
        result = []
        for item in items:
            if isinstance(item, dict):
                result.append(self.mask(item))
            elif isinstance(item, list):
                result.append(self._mask_list(item))
            else:
                result.append(item)
        return result

    def mask_identity(self, identity: str) -> str:
        """
        Masque partiellement une identité.

        "alice@corp.com" → "a****@corp.com", "bob" → "b**".

        Args:
            identity: Identité en clair

        Returns:
            Identité partiellement masquée
        """
        if not identity:
            return identity
        local, sep, domain = identity.partition("@")
        if not local:
            return self.MASK_VALUE
        masked_local = local[0] + "*" * (len(local) - 1)
        return f"{masked_local}{sep}{domain}"

    def is_sensitive_key(self, key: str) -> bool:
        """
        Vérifie si clé contient un pattern sensible (case-insensitive).

        Args:
            key: Nom de la clé à vérifier

        Returns:
            True si clé contient pattern sensible
        """
        if not key:
            return False
        key_lower = key.lower()
        return any(pattern in key_lower for pattern in self._patterns)

    def _is_identity_key(self, key: str) -> bool:
        return key.lower() in self.IDENTITY_KEYS

    def add_pattern(self, pattern: str) -> None:
        """
        Ajoute pattern sensible personnalisé.

        Raises:
            ValueError: Si pattern vide
        """
        if not pattern or not pattern.strip():
            raise ValueError("Pattern cannot be empty")

        pattern_lower = pattern.lower().strip()
        if pattern_lower not in self._patterns:
            self._patterns.append(pattern_lower)
