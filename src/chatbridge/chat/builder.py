"""Build provider-facing message sequences from UI message history."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from ..providers import ModelProfile, ProviderCapabilities
from ..schemas.messages import (
    CoreMessage,
    FileContent,
    FilePart,
    ImageContent,
    ReasoningContent,
    ReasoningPart,
    StoredPart,
    TextContent,
    TextPart,
    ToolCallContent,
    ToolInvocationPart,
    ToolResultContent,
    UIMessage,
)
from .attachments import AttachmentResolver
from .parts import encode_parts, iter_ui_parts

logger = logging.getLogger(__name__)


AssistantItem = Union[TextContent, FileContent, ReasoningContent]
UserItem = Union[TextContent, ImageContent, FileContent]


@dataclass(frozen=True)
class UserMessageToSave:
    """The latest user message together with its persistence-ready parts."""

    message: UIMessage
    parts: list[StoredPart]


@dataclass
class BuildResult:
    core_messages: list[CoreMessage] = field(default_factory=list)
    user_message_to_save: Optional[UserMessageToSave] = None


def _is_image(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("image/")


class CoreMessageBuilder:
    """Translate UI messages for one target model.

    The model's provider capability record is read once and applied to every
    message. Assistant images move into a trailing user message for providers
    that reject them.
    """

    def __init__(
        self,
        profile: ModelProfile,
        resolver: AttachmentResolver | None = None,
    ) -> None:
        self._profile = profile
        self._capabilities: ProviderCapabilities = profile.capabilities_record
        self._resolver = resolver or AttachmentResolver()

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self._capabilities

    async def build(self, messages: Sequence[UIMessage]) -> BuildResult:
        result = BuildResult()
        last_user_index = next(
            (
                index
                for index in range(len(messages) - 1, -1, -1)
                if messages[index].role == "user"
            ),
            None,
        )

        for index, message in enumerate(messages):
            if message.role == "user":
                core = await self._build_user(message)
                if core is not None:
                    result.core_messages.append(core)
                if index == last_user_index:
                    parts = encode_parts(message)
                    if parts:
                        result.user_message_to_save = UserMessageToSave(message, parts)
            elif message.role == "assistant":
                result.core_messages.extend(await self._build_assistant(message))
            else:
                core = self._build_passthrough(message)
                if core is not None:
                    result.core_messages.append(core)

        logger.debug(
            "Built %d core messages from %d UI messages for %s (%s)",
            len(result.core_messages),
            len(messages),
            self._profile.id,
            self._capabilities.name,
        )
        return result

    # ------------------------------------------------------------------
    # user
    # ------------------------------------------------------------------

    @staticmethod
    def _user_text(message: UIMessage) -> str:
        text = message.content.strip() if message.content else ""
        if text:
            return text
        for part in iter_ui_parts(message.parts):
            if isinstance(part, TextPart) and part.text.strip():
                return part.text.strip()
        return ""

    @staticmethod
    def _user_attachments(message: UIMessage) -> list[tuple[str, str | None]]:
        attachments: list[tuple[str, str | None]] = []
        seen: set[str] = set()
        for attachment in message.attachments:
            if not attachment.url or not attachment.content_type:
                continue
            if attachment.url in seen:
                continue
            seen.add(attachment.url)
            attachments.append((attachment.url, attachment.content_type))
        for part in iter_ui_parts(message.parts):
            if isinstance(part, FilePart) and part.url not in seen:
                seen.add(part.url)
                attachments.append((part.url, part.mime_type))
        return attachments

    async def _build_user(self, message: UIMessage) -> CoreMessage | None:
        items: list[UserItem] = []
        text = self._user_text(message)
        if text:
            items.append(TextContent(text=text))

        attachments = self._user_attachments(message)
        if attachments:
            items.extend(
                await self._resolver.resolve_many(attachments, self._capabilities, "user")
            )

        if not items:
            return None
        return CoreMessage(role="user", content=items)

    # ------------------------------------------------------------------
    # assistant
    # ------------------------------------------------------------------

    def _reasoning_item(self, part: ReasoningPart) -> ReasoningContent:
        signature = part.details[0].signature if part.details else None
        if signature and self._capabilities.supports_reasoning_signature:
            return ReasoningContent(text=part.reasoning, signature=signature)
        return ReasoningContent(text=part.reasoning)

    async def _build_assistant(self, message: UIMessage) -> list[CoreMessage]:
        text_items: list[TextContent] = []
        reasoning_items: list[ReasoningContent] = []
        calls: list[ToolCallContent] = []
        results: list[ToolResultContent] = []
        seen_calls: set[str] = set()
        files: list[tuple[str, str | None]] = []
        converted_images: list[tuple[str, str | None]] = []

        if not message.parts and message.content and message.content.strip():
            text_items.append(TextContent(text=message.content.strip()))

        for part in iter_ui_parts(message.parts):
            if isinstance(part, TextPart):
                if part.text:
                    text_items.append(TextContent(text=part.text))
            elif isinstance(part, FilePart):
                if _is_image(part.mime_type) and not self._capabilities.supports_assistant_images:
                    converted_images.append((part.url, part.mime_type))
                    continue
                files.append((part.url, part.mime_type))
            elif isinstance(part, ToolInvocationPart):
                invocation = part.tool_invocation
                if not invocation.has_result:
                    logger.debug(
                        "Dropping unfinished tool call %s from history",
                        invocation.tool_call_id,
                    )
                    continue
                if invocation.tool_call_id in seen_calls:
                    continue
                seen_calls.add(invocation.tool_call_id)
                calls.append(
                    ToolCallContent(
                        tool_call_id=invocation.tool_call_id,
                        tool_name=invocation.tool_name,
                        args=invocation.args,
                    )
                )
                results.append(
                    ToolResultContent(
                        tool_call_id=invocation.tool_call_id,
                        tool_name=invocation.tool_name,
                        result=invocation.result,
                    )
                )
            elif isinstance(part, ReasoningPart):
                reasoning_items.append(self._reasoning_item(part))

        file_items: list[FileContent] = []
        if files:
            resolved = await self._resolver.resolve_many(
                files, self._capabilities, "assistant"
            )
            file_items = [item for item in resolved if isinstance(item, FileContent)]

        core_messages: list[CoreMessage] = []
        if calls:
            core_messages.append(CoreMessage(role="assistant", content=calls))
            core_messages.append(CoreMessage(role="tool", content=results))

        content: list[AssistantItem] = [*text_items, *file_items, *reasoning_items]
        if len(content) == 1 and isinstance(content[0], TextContent):
            core_messages.append(CoreMessage(role="assistant", content=content[0].text))
        elif content:
            core_messages.append(CoreMessage(role="assistant", content=content))

        if converted_images:
            images = await self._resolver.resolve_many(
                converted_images, self._capabilities, "user"
            )
            if images:
                core_messages.append(CoreMessage(role="user", content=images))

        return core_messages

    # ------------------------------------------------------------------
    # system / tool
    # ------------------------------------------------------------------

    @staticmethod
    def _build_passthrough(message: UIMessage) -> CoreMessage | None:
        text = message.content or ""
        if not text:
            text = "\n".join(
                part.text for part in iter_ui_parts(message.parts) if isinstance(part, TextPart)
            )
        if not text:
            return None
        return CoreMessage(role=message.role, content=text)


async def build_core_messages(
    messages: Sequence[UIMessage],
    profile: ModelProfile,
    resolver: AttachmentResolver | None = None,
) -> BuildResult:
    """Build the provider message sequence for ``profile``."""

    return await CoreMessageBuilder(profile, resolver).build(messages)


__all__ = [
    "BuildResult",
    "CoreMessageBuilder",
    "UserMessageToSave",
    "build_core_messages",
]
