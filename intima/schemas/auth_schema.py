from intima.schemas.base_schema import CamelModel
from intima.schemas.user_schema import UserSummary


class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""


class LoginResponse(CamelModel):
    message: str
    user: UserSummary
    access_token: str
    token_type: str = "bearer"
