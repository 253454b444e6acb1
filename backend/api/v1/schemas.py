"""Request and response models for the v1 API.

Responses use camelCase keys; requests accept either camelCase or
snake_case field names.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from models import Comment, User
from services.comments import CommentView
from services.posts import PostView
from services.users import AuthorSummary, UserPublic


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    google_id: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        public = UserPublic.from_user(user)
        return cls(
            id=public.id,
            name=public.name,
            email=public.email,
            google_id=public.google_id,
            created_at=public.created_at,
            updated_at=public.updated_at,
        )


class AuthorResponse(CamelModel):
    id: str
    name: str
    email: str

    @classmethod
    def from_summary(cls, summary: AuthorSummary | None) -> "AuthorResponse | None":
        if summary is None:
            return None
        return cls(id=summary.id, name=summary.name, email=summary.email)


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


class LoginRequest(CamelModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class AuthResponse(CamelModel):
    message: str
    user: UserResponse
    token: str


class CurrentUserResponse(CamelModel):
    user: UserResponse


class PaginationResponse(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PostCreateRequest(CamelModel):
    content: str | None = Field(default=None, max_length=5000)
    caption: str | None = Field(default=None, max_length=2200)
    images: list[str] = Field(default_factory=list, max_length=10)


class PostUpdateRequest(CamelModel):
    content: str | None = Field(default=None, max_length=5000)
    caption: str | None = Field(default=None, max_length=2200)
    images: list[str] | None = Field(default=None, max_length=10)


class PostResponse(CamelModel):
    id: str
    user_id: str
    content: str
    caption: str | None = None
    images: list[str] = Field(default_factory=list)
    likes: list[str] = Field(default_factory=list)
    like_count: int = 0
    comments_count: int = 0
    user_liked: bool = False
    author: AuthorResponse | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_view(cls, view: PostView, *, viewer_id: str | None = None) -> "PostResponse":
        post = view.post
        likes = list(post.likes or [])
        return cls(
            id=post.id,
            user_id=post.user_id,
            content=post.content,
            caption=post.caption,
            images=list(post.images or []),
            likes=likes,
            like_count=len(likes),
            comments_count=post.comments_count,
            user_liked=viewer_id is not None and viewer_id in likes,
            author=AuthorResponse.from_summary(view.author),
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PostDetailResponse(CamelModel):
    post: PostResponse


class PostMutationResponse(CamelModel):
    message: str
    post: PostResponse


class PostListResponse(CamelModel):
    posts: list[PostResponse]
    pagination: PaginationResponse


class LikeToggleResponse(CamelModel):
    message: str
    liked: bool
    like_count: int


class LikeStatusResponse(CamelModel):
    like_count: int
    user_liked: bool


class LikerListResponse(CamelModel):
    users: list[AuthorResponse]
    pagination: PaginationResponse


class CommentRequest(CamelModel):
    content: str = Field(max_length=2000)


class CommentResponse(CamelModel):
    id: str
    post_id: str
    user_id: str
    content: str
    author: AuthorResponse | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(
        cls,
        comment: Comment,
        author: AuthorSummary | None = None,
    ) -> "CommentResponse":
        return cls(
            id=comment.id,
            post_id=comment.post_id,
            user_id=comment.user_id,
            content=comment.content,
            author=AuthorResponse.from_summary(author),
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )

    @classmethod
    def from_view(cls, view: CommentView) -> "CommentResponse":
        return cls.from_comment(view.comment, view.author)


class CommentMutationResponse(CamelModel):
    message: str
    comment: CommentResponse


class CommentListResponse(CamelModel):
    comments: list[CommentResponse]
    pagination: PaginationResponse
