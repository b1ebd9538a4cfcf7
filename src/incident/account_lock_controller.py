"""
Incident & Réponse - Account Lock Controller

Table en mémoire de l'état des comptes: verrouillage avec échéance,
expiration paresseuse, suspension et compteur d'échecs.
"""

import dataclasses
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from src.core.interfaces import LockSettings
from src.incident.interfaces import (
    AccountState,
    AccountStatistics,
    AccountStatus,
    IAccountLockController,
)
from src.logging.structured_logger import StructuredLogger


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AccountLockController(IAccountLockController):
    """
    Gestion de l'état des comptes.

    Un compte verrouillé dont l'échéance est atteinte (now >= unlock_at)
    redevient actif à la première lecture: aucun timer n'est utilisé.
    Toutes les opérations sont protégées par un unique RLock.

    Example:
        controller = AccountLockController()
        controller.lock_account("alice@corp.com", "Brute force detected")
        controller.is_account_locked("alice@corp.com")  # True
    """

    # Fenêtre d'activité récente des statistiques
    STATISTICS_RECENT_MINUTES: int = 5

    def __init__(
        self,
        settings: Optional[LockSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        """
        Args:
            settings: Durée de verrouillage et fenêtre d'activité récente
            clock: Horloge injectable (UTC)
            logger: Logger structuré (défaut: "account-lock-controller")
        """
        self._settings = settings or LockSettings()
        self._clock = clock or _utc_now
        self._logger = logger or StructuredLogger("account-lock-controller")
        self._lock_duration = timedelta(hours=self._settings.lock_duration_hours)

        self._lock = threading.RLock()
        self._accounts: Dict[str, AccountStatus] = {}

    @property
    def lock_duration(self) -> timedelta:
        return self._lock_duration

    def get_account_status(self, identity: str) -> AccountStatus:
        """
        Retourne l'état d'un compte (créé actif si inconnu).

        Applique l'expiration paresseuse du verrou.
        """
        with self._lock:
            return dataclasses.replace(self._resolve(identity))

    def lock_account(self, identity: str, reason: str) -> AccountStatus:
        with self._lock:
            account = self._resolve(identity)
            now = self._clock()
            account.status = AccountState.LOCKED
            account.locked_at = now
            account.lock_reason = reason
            account.unlock_at = now + self._lock_duration
            account.last_login_attempt = now
            snapshot = dataclasses.replace(account)

        self._logger.warn(
            "Account locked",
            identity=identity,
            reason=reason,
            unlock_at=snapshot.unlock_at.isoformat(),
        )
        return snapshot

    def unlock_account(self, identity: str) -> AccountStatus:
        with self._lock:
            account = self._resolve(identity)
            self._clear_lock(account)
            snapshot = dataclasses.replace(account)

        self._logger.info("Account unlocked", identity=identity)
        return snapshot

    def suspend_account(self, identity: str, reason: str) -> AccountStatus:
        """
        Suspend un compte sans échéance (déblocage par unlock_account).
        """
        with self._lock:
            account = self._resolve(identity)
            account.status = AccountState.SUSPENDED
            account.lock_reason = reason
            account.locked_at = self._clock()
            account.unlock_at = None
            snapshot = dataclasses.replace(account)

        self._logger.warn("Account suspended", identity=identity, reason=reason)
        return snapshot

    def is_account_locked(self, identity: str) -> bool:
        with self._lock:
            return self._resolve(identity).status == AccountState.LOCKED

    def is_login_blocked(self, identity: str) -> bool:
        """True si le compte est verrouillé ou suspendu."""
        with self._lock:
            return self._resolve(identity).status != AccountState.ACTIVE

    def record_failed_attempt(self, identity: str) -> AccountStatus:
        with self._lock:
            account = self._resolve(identity)
            account.last_login_attempt = self._clock()
            account.failed_attempts += 1
            return dataclasses.replace(account)

    def get_locked_accounts(self) -> List[AccountStatus]:
        """Comptes actuellement verrouillés (verrous expirés levés)."""
        with self._lock:
            for identity in list(self._accounts.keys()):
                self._resolve(identity)
            return [
                dataclasses.replace(a)
                for a in self._accounts.values()
                if a.status == AccountState.LOCKED
            ]

    def get_recent_activity(self, minutes: Optional[int] = None) -> List[AccountStatus]:
        """
        Comptes ayant une tentative récente, la plus récente en premier.

        Args:
            minutes: Fenêtre (défaut: LockSettings.recent_activity_minutes)
        """
        window = minutes if minutes is not None else self._settings.recent_activity_minutes
        cutoff = self._clock() - timedelta(minutes=window)
        with self._lock:
            recent = [
                dataclasses.replace(a)
                for a in self._accounts.values()
                if a.last_login_attempt is not None and a.last_login_attempt >= cutoff
            ]
        recent.sort(key=lambda a: a.last_login_attempt, reverse=True)
        return recent

    def get_lock_remaining_time(self, identity: str) -> Optional[timedelta]:
        """Temps restant avant déverrouillage, None si non verrouillé."""
        with self._lock:
            account = self._resolve(identity)
            if account.status != AccountState.LOCKED or account.unlock_at is None:
                return None
            return account.unlock_at - self._clock()

    def reset_account(self, identity: str) -> AccountStatus:
        """Remplace l'état d'un compte par un état actif vierge."""
        with self._lock:
            self._accounts.pop(identity, None)
            return dataclasses.replace(self._resolve(identity))

    def reset_all_accounts(self) -> None:
        with self._lock:
            count = len(self._accounts)
            self._accounts.clear()
        self._logger.info("All accounts reset", accounts_cleared=count)

    def create_accounts(self, identities: Iterable[str]) -> int:
        """
        Crée (ou réinitialise) des comptes actifs.

        Returns:
            Nombre de comptes créés
        """
        created = 0
        with self._lock:
            for identity in identities:
                self._accounts[identity] = AccountStatus(identity=identity)
                created += 1
        return created

    def get_account_statistics(self) -> AccountStatistics:
        now = self._clock()
        recent_cutoff = now - timedelta(minutes=self.STATISTICS_RECENT_MINUTES)
        with self._lock:
            accounts = [self._resolve(identity) for identity in list(self._accounts.keys())]
            return AccountStatistics(
                total_accounts=len(accounts),
                active_accounts=sum(1 for a in accounts if a.status == AccountState.ACTIVE),
                locked_accounts=sum(1 for a in accounts if a.status == AccountState.LOCKED),
                suspended_accounts=sum(1 for a in accounts if a.status == AccountState.SUSPENDED),
                recent_activity=sum(
                    1
                    for a in accounts
                    if a.last_login_attempt is not None and a.last_login_attempt >= recent_cutoff
                ),
                last_updated=now,
            )

    def _resolve(self, identity: str) -> AccountStatus:
        """Compte interne (créé si absent), verrou expiré levé. Appelé sous _lock."""
        account = self._accounts.get(identity)
        if account is None:
            account = AccountStatus(identity=identity)
            self._accounts[identity] = account
            return account

        if (
            account.status == AccountState.LOCKED
            and account.unlock_at is not None
            and self._clock() >= account.unlock_at
        ):
            self._clear_lock(account)
            self._logger.info("Account lock expired", identity=identity)
        return account

    @staticmethod
    def _clear_lock(account: AccountStatus) -> None:
        account.status = AccountState.ACTIVE
        account.locked_at = None
        account.lock_reason = None
        account.unlock_at = None
        account.failed_attempts = 0
