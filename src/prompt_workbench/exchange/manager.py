"""
Import/export manager.

Ties format detection and conversion to file and clipboard transport.
Every operation returns a ConversionResult; parse and I/O failures at the
boundary are mapped into failed results.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..config.settings import WorkbenchSettings
from ..formats.converter import DataConverter
from ..formats.schemas import ExportFormat, PromptFormat, TemplateExportInfo
from ..templates.models import ConversionResult, StandardPromptData
from ..templates.parser import PlaceholderParser
from .transport import ClipboardPort, FileTransport, LocalFileTransport, MemoryClipboard


logger = logging.getLogger(__name__)

FILENAME_PREFIXES = {
    ExportFormat.STANDARD: "standard-prompt",
    ExportFormat.OPENAI: "openai-request",
    ExportFormat.TEMPLATE: "prompt-template",
}

SUPPORTED_EXTENSIONS = (".json",)


class ImportExportManager:
    """
    Imports prompt data from files and clipboard text, exports it back out.

    Args:
        converter: Data converter used for detection and conversion
        file_transport: File port (defaults to the local file system)
        clipboard: Clipboard port (defaults to an in-memory clipboard)
        export_dir: Directory for exported files
    """

    def __init__(
        self,
        converter: Optional[DataConverter] = None,
        file_transport: Optional[FileTransport] = None,
        clipboard: Optional[ClipboardPort] = None,
        export_dir: Union[str, Path] = "exports"
    ):
        self.converter = converter or DataConverter()
        self.file_transport = file_transport or LocalFileTransport()
        self.clipboard = clipboard or MemoryClipboard()
        self.export_dir = Path(export_dir)
        self._parser = PlaceholderParser()

    @classmethod
    def from_settings(
        cls,
        settings: WorkbenchSettings,
        file_transport: Optional[FileTransport] = None,
        clipboard: Optional[ClipboardPort] = None
    ) -> "ImportExportManager":
        """Create a manager using the configured export directory and default model."""
        return cls(
            converter=DataConverter(default_model=settings.default_model),
            file_transport=file_transport,
            clipboard=clipboard,
            export_dir=settings.export_dir,
        )

    async def import_from_file(self, path: Union[str, Path]) -> ConversionResult[StandardPromptData]:
        """Import prompt data from a JSON file."""
        if not path:
            return ConversionResult.fail("No file provided")

        path = Path(path)
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            return ConversionResult.fail("Only JSON files are supported")

        try:
            text = await self.file_transport.read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            return ConversionResult.fail(f"File import failed: {e}")

        return self._import_text(text, source="file")

    def import_from_clipboard(self, json_text: str) -> ConversionResult[StandardPromptData]:
        """Import prompt data from clipboard JSON text."""
        if not json_text or not isinstance(json_text, str):
            return ConversionResult.fail("No text provided")
        return self._import_text(json_text, source="clipboard")

    async def import_from_system_clipboard(self) -> ConversionResult[StandardPromptData]:
        """Read the clipboard port and import its content."""
        try:
            text = await self.clipboard.read_text()
        except OSError as e:
            return ConversionResult.fail(f"Clipboard import failed: {e}")
        return self.import_from_clipboard(text)

    async def export_to_file(
        self,
        data: StandardPromptData,
        format: Union[ExportFormat, str],
        filename: Optional[str] = None
    ) -> ConversionResult[Path]:
        """
        Export prompt data to a JSON file in the export directory.

        Returns:
            Result with the written path
        """
        prepared = self.prepare_export_data(data, format)
        if not prepared.success:
            return ConversionResult.fail(prepared.error)

        path = self.export_dir / (filename or self.generate_filename(format))
        try:
            await self.file_transport.write_text(path, self._dumps(prepared.data))
        except OSError as e:
            return ConversionResult.fail(f"Export failed: {e}")

        logger.info("Exported %s data to %s", ExportFormat(format).value, path)
        return ConversionResult.ok(path, prepared.warnings)

    async def export_to_clipboard(
        self,
        data: StandardPromptData,
        format: Union[ExportFormat, str]
    ) -> ConversionResult[str]:
        """
        Export prompt data to the clipboard as JSON.

        Returns:
            Result with the copied JSON text
        """
        prepared = self.prepare_export_data(data, format)
        if not prepared.success:
            return ConversionResult.fail(prepared.error)

        text = self._dumps(prepared.data)
        try:
            await self.clipboard.write_text(text)
        except OSError as e:
            return ConversionResult.fail(f"Export to clipboard failed: {e}")

        return ConversionResult.ok(text, prepared.warnings)

    def detect_format(self, data: Any) -> PromptFormat:
        """Detect the format of parsed JSON data."""
        return self.converter.detect_format(data)

    def prepare_export_data(
        self,
        data: StandardPromptData,
        format: Union[ExportFormat, str]
    ) -> ConversionResult[Dict[str, Any]]:
        """Build the JSON-ready payload for an export format."""
        try:
            format = ExportFormat(format)
        except ValueError:
            return ConversionResult.fail(f"Unsupported export format: {format}")

        if format == ExportFormat.STANDARD:
            return ConversionResult.ok(data.to_dict())
        if format == ExportFormat.OPENAI:
            return self.converter.to_openai(data)
        return ConversionResult.ok(self._template_export(data))

    def generate_filename(self, format: Union[ExportFormat, str]) -> str:
        """
        Build a format-prefixed, sortable, file-system safe filename.

        Example:
            ``openai-request-2024-05-01T12-30-45.json``
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
        return f"{FILENAME_PREFIXES[ExportFormat(format)]}-{timestamp}.json"

    def _import_text(self, text: str, source: str) -> ConversionResult[StandardPromptData]:
        try:
            parsed = json.loads(text.strip())
        except ValueError as e:
            return ConversionResult.fail(f"Invalid JSON format: {e}")

        return self._import_parsed(parsed, source)

    def _import_parsed(self, parsed: Any, source: str) -> ConversionResult[StandardPromptData]:
        detected = self.converter.detect_format(parsed)
        logger.debug("Detected %s format in %s import", detected.value, source)

        if detected == PromptFormat.LANGFUSE:
            return self.converter.from_langfuse(parsed)
        if detected == PromptFormat.OPENAI:
            return self.converter.from_openai(parsed)
        if detected == PromptFormat.CONVERSATION:
            return self.converter.from_conversation_messages(
                parsed,
                {"imported_from": source, "detected_format": PromptFormat.CONVERSATION.value},
            )

        # Standard exports without a model are not OpenAI requests but still importable
        if self.converter.validate(parsed, PromptFormat.STANDARD).success:
            try:
                return ConversionResult.ok(StandardPromptData.model_validate(parsed))
            except ValueError as e:
                return ConversionResult.fail(f"Invalid standard data: {e}")

        return ConversionResult.fail(
            f"Unknown or unsupported data format. Detected: {detected.value}"
        )

    def _template_export(self, data: StandardPromptData) -> Dict[str, Any]:
        variables: Dict[str, str] = {}
        for message in data.messages:
            for name in self._parser.extract_variables(message.content):
                variables.setdefault(name, f"[{name}_placeholder]")

        info = TemplateExportInfo(
            exported_at=datetime.now(timezone.utc).isoformat(),
            variable_count=len(variables),
        )
        return {
            "template": data.to_dict(),
            "variables": variables,
            "export_info": info.model_dump(),
        }

    @staticmethod
    def _dumps(payload: Any) -> str:
        return json.dumps(payload, indent=2, ensure_ascii=False)
