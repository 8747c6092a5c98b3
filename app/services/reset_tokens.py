"""
Tokens de redefinição de senha (uso único, com validade).

O token vai por e-mail; no banco fica só o sha256 dele.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.core.errors import InvalidOrExpiredToken
from app.core.security import generate_reset_token, hash_password, hash_token, utcnow
from app.models import ResetToken, User
from app.services.auth_service import check_password, notify_safely
from app.services.notifications import LogNotifier, Notifier
from app.services.stores import CredentialStore, transaction, translate_store_errors

logger = logging.getLogger(__name__)


class ResetTokenIssuer:
    def __init__(
        self,
        db: Session,
        notifier: Optional[Notifier] = None,
        cfg: Settings = settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.cfg = cfg
        self.clock = clock
        self.notifier = notifier or LogNotifier()
        self.credentials = CredentialStore(db)

    def issue(self, email: str) -> None:
        """
        Cria um token para o usuário do e-mail e manda por e-mail.

        E-mail desconhecido não gera token nem erro: quem chama recebe sempre
        o mesmo "aceito", sem saber se a conta existe.
        """
        now = self.clock()
        token = generate_reset_token()
        target: Optional[User] = None

        with transaction(self.db):
            self._purge(now)

            user = self.credentials.get(email)
            if user is None:
                logger.info("Reset solicitado para e-mail não cadastrado")
            else:
                self.db.add(
                    ResetToken(
                        token=hash_token(token),
                        user_id=user.id,
                        expires_at=now + timedelta(minutes=self.cfg.RESET_TOKEN_EXPIRE_MINUTES),
                        consumed=False,
                        created_at=now,
                    )
                )
                with translate_store_errors(self.db):
                    self.db.flush()
                target = user

        if target is not None:
            logger.info("Token de reset emitido para o usuário %s", target.id)
            notify_safely(self.notifier.send_password_reset, target.email, target.full_name, token)

    def consume(self, token: str, new_password: str) -> str:
        """
        Troca a senha usando o token. Retorna o id do usuário.

        O UPDATE condicional é o check-and-set: de duas chamadas simultâneas
        com o mesmo token, só uma encontra a linha ainda não consumida.
        """
        # política antes de tocar no token: senha fraca não queima o token
        check_password(new_password, self.cfg)
        pw_hash = hash_password(new_password)
        digest = hash_token(token)
        now = self.clock()

        with transaction(self.db):
            with translate_store_errors(self.db):
                result = self.db.execute(
                    update(ResetToken)
                    .where(
                        ResetToken.token == digest,
                        ResetToken.consumed == False,
                        # inválido a partir de expires_at (inclusive)
                        ResetToken.expires_at > now,
                    )
                    .values(consumed=True, consumed_at=now)
                    .execution_options(synchronize_session=False)
                )
            if result.rowcount != 1:
                raise InvalidOrExpiredToken()

            reset = self.db.get(ResetToken, digest)
            user = self.credentials.get_by_id(reset.user_id, lock=True)
            if user is None:
                raise InvalidOrExpiredToken()

            user.password_hash = pw_hash
            user.temporary_password = False
            user.password_changed_at = now
            self.credentials.put(user)

        logger.info("Senha redefinida via token para o usuário %s", user.id)
        return user.id

    def purge_expired(self) -> int:
        """Apaga tokens vencidos há mais que a retenção configurada."""
        with transaction(self.db):
            removed = self._purge(self.clock())
        return removed

    def _purge(self, now: datetime) -> int:
        cutoff = now - timedelta(hours=self.cfg.RESET_TOKEN_RETENTION_HOURS)
        with translate_store_errors(self.db):
            result = self.db.execute(
                delete(ResetToken)
                .where(ResetToken.expires_at < cutoff)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount:
            logger.info("%s token(s) de reset expirados removidos", result.rowcount)
        return result.rowcount or 0
