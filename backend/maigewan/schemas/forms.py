"""
Form schemas for page actions.

Field aliases match the form field names the pages post (camelCase);
messages are shown to users next to the offending field.
"""

import re
from typing import Annotated, Any
from urllib.parse import urlparse

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic_core import PydanticCustomError

from maigewan.schemas.profanity import reject_profanity

MIN_PASSWORD_LENGTH = 6
MAX_AVATAR_BYTES = 5242880

IMAGE_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/svg+xml",
    "image/gif",
)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9]*$")

PASSWORD_MISMATCH = "两次输入的密码必须一致"
PASSWORD_TOO_SHORT = "密码至少需要6个字符"
INVALID_EMAIL = "请输入有效的邮箱地址"


def required(message: str) -> BeforeValidator:
    """Report a missing field with message instead of pydantic's default."""

    def check(value: Any) -> Any:
        if value is None:
            raise ValueError(message)
        return value

    return BeforeValidator(check)


def email_address(message: str) -> AfterValidator:
    def check(value: str) -> str:
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            raise ValueError(message)
        return value

    return AfterValidator(check)


def length(
    min_len: int | None = None,
    max_len: int | None = None,
    min_message: str = "",
    max_message: str = "",
) -> AfterValidator:
    def check(value: str) -> str:
        if min_len is not None and len(value) < min_len:
            raise ValueError(min_message)
        if max_len is not None and len(value) > max_len:
            raise ValueError(max_message)
        return value

    return AfterValidator(check)


def matches(pattern: re.Pattern, message: str) -> AfterValidator:
    def check(value: str) -> str:
        if not pattern.match(value):
            raise ValueError(message)
        return value

    return AfterValidator(check)


def not_profane(message: str) -> AfterValidator:
    return AfterValidator(reject_profanity(message))


def trimmed() -> AfterValidator:
    return AfterValidator(str.strip)


def check_passwords_match(password: str, password_confirm: str) -> None:
    """Raise a mismatch error that is reported on both password fields."""
    if password != password_confirm:
        raise PydanticCustomError(
            "password_mismatch",
            PASSWORD_MISMATCH,
            {"fields": ["password", "passwordConfirm"]},
        )


def required_field() -> Any:
    # validate_default lets required() see the None of a missing key
    return Field(default=None, validate_default=True)


class FormSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def fill_missing_fields(cls, data: Any) -> Any:
        """
        Post absent required_field() keys as None under their form name.

        Errors on defaults are located by attribute name; an explicit None
        is located by the posted key, e.g. "oldPassword".
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name, field in cls.model_fields.items():
            key = field.alias or name
            if field.validate_default and key not in data and name not in data:
                data[key] = None
        return data


# ------------------------------
# REGISTER USER
# ------------------------------
class RegisterUserSchema(FormSchema):
    email: Annotated[str, required("邮箱为必填项"), email_address(INVALID_EMAIL)] = required_field()
    password: Annotated[
        str, required("密码为必填项"), length(MIN_PASSWORD_LENGTH, min_message=PASSWORD_TOO_SHORT)
    ] = required_field()
    password_confirm: Annotated[
        str, required("确认密码为必填项"), length(MIN_PASSWORD_LENGTH, min_message=PASSWORD_TOO_SHORT)
    ] = Field(default=None, validate_default=True, alias="passwordConfirm")

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterUserSchema":
        check_passwords_match(self.password, self.password_confirm)
        return self


# ------------------------------
# LOGIN USER
# ------------------------------
class LoginUserSchema(FormSchema):
    email: Annotated[str, required("邮箱为必填项"), email_address(INVALID_EMAIL)] = required_field()
    password: Annotated[str, required("密码为必填项")] = required_field()


# ------------------------------
# UPDATE PASSWORD
# ------------------------------
class UpdatePasswordSchema(FormSchema):
    old_password: Annotated[str, required("当前密码为必填项")] = Field(
        default=None, validate_default=True, alias="oldPassword"
    )
    password: Annotated[
        str, required("新密码为必填项"), length(MIN_PASSWORD_LENGTH, min_message=PASSWORD_TOO_SHORT)
    ] = required_field()
    password_confirm: Annotated[
        str, required("确认新密码为必填项"), length(MIN_PASSWORD_LENGTH, min_message=PASSWORD_TOO_SHORT)
    ] = Field(default=None, validate_default=True, alias="passwordConfirm")

    @model_validator(mode="after")
    def passwords_match(self) -> "UpdatePasswordSchema":
        check_passwords_match(self.password, self.password_confirm)
        return self


# ------------------------------
# PASSWORD RESET
# ------------------------------
class ResetPasswordSchema(FormSchema):
    email: Annotated[
        str, required("Email is required"), email_address("Email must be a valid email.")
    ] = required_field()
    password: Annotated[str, required("Password is required")] = required_field()


# ------------------------------
# UPDATE EMAIL
# ------------------------------
class UpdateEmailSchema(FormSchema):
    email: Annotated[
        str, required("Email is required"), email_address("Email must be a valid email")
    ] = required_field()


# ------------------------------
# UPDATE USERNAME
# ------------------------------
class UpdateUsernameSchema(FormSchema):
    username: Annotated[
        str,
        required("Username is required"),
        length(3, 24, "Username must be at least 3 characters", "Username must be 24 characters or less"),
        matches(USERNAME_PATTERN, "Username can only contain letters or numbers."),
    ] = required_field()


# ------------------------------
# UPDATE PROFILE
# ------------------------------
class AvatarUpload(BaseModel):
    """Metadata of an uploaded avatar file."""

    filename: str | None = None
    content_type: str | None = None
    size: int = Field(ge=0)

    @model_validator(mode="after")
    def check_file(self) -> "AvatarUpload":
        issues = []
        if self.size > MAX_AVATAR_BYTES:
            issues.append("Avatar must be less than 5MB")
        if self.content_type not in IMAGE_TYPES:
            issues.append("Unsupported file type. Supported formats: jpeg, jpg, png, webp, svg, gif")
        if issues:
            raise ValueError("; ".join(issues))
        return self


def valid_url(value: str) -> str:
    parsed = urlparse(value)
    if not parsed.scheme or not (parsed.netloc or parsed.path):
        raise ValueError("Must be a valid URL")
    return value


class UpdateProfileSchema(FormSchema):
    name: Annotated[
        str,
        required("Name is required"),
        trimmed(),
        length(1, 64, "Name is required", "Name must be 64 characters or less"),
    ] = required_field()
    job_title: Annotated[
        str,
        required("Job Title is required"),
        trimmed(),
        length(1, 64, "Job Title is required", "Job Title must be 64 characters or less"),
    ] = required_field()
    website: Annotated[str, AfterValidator(valid_url)] | None = None
    avatar: AvatarUpload | None = None


# ------------------------------
# FOLLOW USER
# ------------------------------
class FollowUserSchema(FormSchema):
    user_id: str = Field(alias="userId")
    current_user_id: str = Field(alias="currentUserId")


# ------------------------------
# CONTACT FORM
# ------------------------------
class ContactFormSchema(FormSchema):
    first_name: Annotated[
        str,
        length(2, 50, "名字至少需要2个字符", "名字最多50个字符"),
        not_profane("名字包含不当内容"),
    ] = Field(alias="firstName")
    last_name: Annotated[
        str,
        length(2, 50, "姓氏至少需要2个字符", "姓氏最多50个字符"),
        not_profane("姓氏包含不当内容"),
    ] = Field(alias="lastName")
    email: Annotated[str, email_address(INVALID_EMAIL)]
    kind: Annotated[str, length(2, 50, "请选择类型", "请选择类型")] = Field(alias="type")
    priority: Annotated[str, length(1, 2, "请选择优先级", "请选择优先级")]
    message: Annotated[
        str,
        length(10, 500, "留言至少需要10个字符", "留言最多500个字符"),
        not_profane("留言包含不当内容"),
    ]


# ------------------------------
# GUEST BOOK AND COMMENTS
# ------------------------------
GuestBookContent = Annotated[
    str,
    required("Message is required"),
    length(1, 250, "Message must be at least 1 character", "Message must be 250 characters or less"),
    not_profane("Message contains inappropriate language"),
]


class CreateGuestBookPostSchema(FormSchema):
    author: Annotated[str, not_profane("Author name contains inappropriate language")]
    content: GuestBookContent = required_field()


class CreatePostCommentSchema(FormSchema):
    author: str
    content: GuestBookContent = required_field()
    post: str


class LikeGuestBookPostSchema(FormSchema):
    post_id: str = Field(alias="postId")
    current_user_id: str = Field(alias="currentUserId")


class DeleteGuestBookPostSchema(FormSchema):
    post_id: str = Field(alias="postId")


class DeletePostCommentSchema(FormSchema):
    post: str


class DeleteNotificationSchema(FormSchema):
    notification_id: str = Field(alias="notificationId")


def empty_form(schema: type[BaseModel]) -> dict[str, Any]:
    """Initial form state for a page load: blank values, no errors."""
    data: dict[str, Any] = {}
    for name, field in schema.model_fields.items():
        key = field.alias or name
        data[key] = "" if field.is_required() or field.default is None else field.default
    return {
        "id": schema.__name__,
        "valid": False,
        "posted": False,
        "data": data,
        "errors": {},
    }
