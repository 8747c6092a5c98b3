"""
Exceções do serviço de autenticação.

Cada classe tem um ``code`` estável (o nome da classe) que vai para o corpo
da resposta HTTP; o front usa esse código, nunca a mensagem.
"""
from typing import Any, Dict, Optional


class AuthError(Exception):
    """Base de todos os erros de domínio do serviço."""

    status_code: int = 400
    retryable: bool = False
    default_message: str = "Erro ao processar a solicitação."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "reason": self.code, "message": self.message}


class InvalidCredentials(AuthError):
    status_code = 401
    default_message = "Credenciais inválidas. Verifique seu e-mail e senha."


class WeakPassword(AuthError):
    status_code = 400
    default_message = "Senha não atende à política mínima."


class NotFound(AuthError):
    status_code = 404
    default_message = "Usuário não encontrado."


class InvalidOrExpiredToken(AuthError):
    status_code = 400
    default_message = "Token de redefinição inválido ou expirado."


class ConflictError(AuthError):
    """Corrida em restrição de unicidade (dois writers no mesmo e-mail/CNPJ)."""

    status_code = 409
    default_message = "Conflito ao gravar: registro já existe."


class DuplicateEmail(ConflictError):
    default_message = "E-mail já cadastrado."


class DuplicateCNPJ(ConflictError):
    default_message = "Já existe uma empresa cadastrada com este CNPJ."


class StoreUnavailable(AuthError):
    """Falha transitória do banco. Única categoria segura para retry."""

    status_code = 503
    retryable = True
    default_message = "Serviço temporariamente indisponível. Tente novamente."


class InvalidCNPJ(AuthError):
    status_code = 400
    default_message = "CNPJ inválido."


class InvalidEmail(AuthError):
    status_code = 400
    default_message = "E-mail inválido."


class NotAuthorized(AuthError):
    status_code = 401
    default_message = "Não autenticado."


class InvalidPhone(AuthError):
    status_code = 400
    default_message = "WhatsApp inválido. Informe DDD + número."
