"""
Troubleshooting guides.

Guides are keyed by error code or by category value; lookups try the code
first. Rendering here is plain text only.
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from reliability.domain.models.error import BaseError, ErrorCategory, TroubleshootingStep


class ResourceLink(BaseModel):
    """Pointer to further reading."""
    title: str
    url: str
    type: Literal["documentation", "video", "forum", "github"] = "documentation"


class TroubleshootingGuide(BaseModel):
    """Step-by-step guide for resolving a class of errors."""
    title: str
    description: str
    category: ErrorCategory
    steps: List[TroubleshootingStep]
    additional_resources: List[ResourceLink] = Field(default_factory=list)
    estimated_time: str
    difficulty: Literal["beginner", "intermediate", "advanced"]


def _steps(*steps) -> List[TroubleshootingStep]:
    return [
        TroubleshootingStep(step=index, description=description, action=action, expected=expected)
        for index, (description, action, expected) in enumerate(steps, start=1)
    ]


class TroubleshootingGuideManager:
    """Registry of troubleshooting guides, seeded with the built-in ones."""

    def __init__(self):
        self._guides: Dict[str, TroubleshootingGuide] = {}
        self._register_builtin_guides()

    def get_guide_for_error(self, error: BaseError) -> Optional[TroubleshootingGuide]:
        """
        Find the guide for an error.

        Args:
            error: The error to look up

        Returns:
            The guide registered for the error code, else for its category, else None
        """
        return self._guides.get(error.code) or self._guides.get(error.category.value)

    def get_all_guides(self) -> List[TroubleshootingGuide]:
        return list(self._guides.values())

    def get_guides_by_category(self, category: ErrorCategory) -> List[TroubleshootingGuide]:
        return [guide for guide in self._guides.values() if guide.category == category]

    def register_guide(self, key: str, guide: TroubleshootingGuide) -> None:
        """Add or replace the guide stored under an error code or category value."""
        self._guides[key] = guide

    def generate_user_message(self, error: BaseError) -> str:
        """
        Build a plain-text message with the error's user message and guide.

        Args:
            error: The error to describe

        Returns:
            str: User message followed by numbered steps and resources, if a guide exists
        """
        guide = self.get_guide_for_error(error)
        message = error.user_message

        if guide is None:
            return message

        lines = [message, "", "Troubleshooting Steps:"]
        for index, step in enumerate(guide.steps, start=1):
            lines.append(f"{index}. {step.description}")
            lines.append(f"   Action: {step.action}")
            lines.append(f"   Expected: {step.expected}")
            lines.append("")

        if guide.additional_resources:
            lines.append("Additional Resources:")
            for resource in guide.additional_resources:
                lines.append(f"- {resource.title}: {resource.url}")

        return "\n".join(lines).rstrip("\n") + "\n"

    def _register_builtin_guides(self) -> None:
        self.register_guide("CONNECTION_FAILED", TroubleshootingGuide(
            title="Model Server Connection Failed",
            description=(
                "The toolkit cannot connect to the Ollama service. This is required "
                "for AI-powered document analysis and processing."
            ),
            category=ErrorCategory.CONNECTION,
            estimated_time="5-10 minutes",
            difficulty="beginner",
            steps=_steps(
                ("Check if Ollama is installed", "Open a terminal and run: ollama --version",
                 "Version information should be displayed"),
                ("Install Ollama if not present",
                 "Visit https://ollama.ai and follow installation instructions for your operating system",
                 "Ollama should be successfully installed"),
                ("Start the Ollama service", "Run: ollama serve",
                 "Ollama should start listening on http://localhost:11434"),
                ("Verify the service is accessible", "Run: curl http://localhost:11434",
                 "Should receive a response from the Ollama API"),
                ("Test with a basic model", "Run: ollama pull llama2 (this may take several minutes)",
                 "Model should download successfully"),
            ),
            additional_resources=[
                ResourceLink(title="Ollama Official Documentation", url="https://github.com/ollama/ollama",
                             type="github"),
                ResourceLink(title="Ollama Installation Guide", url="https://ollama.ai/download"),
            ],
        ))

        self.register_guide("MODEL_ERROR", TroubleshootingGuide(
            title="Model Error",
            description=(
                "The requested AI model is not available or failed to respond. The model "
                "may not be downloaded or the system may lack resources to run it."
            ),
            category=ErrorCategory.MODEL,
            estimated_time="10-15 minutes",
            difficulty="beginner",
            steps=_steps(
                ("List available models", "Run: ollama list",
                 "Should display a list of installed models"),
                ("Download required model if missing", "Run: ollama pull [model-name]",
                 "Model should download successfully (may take 10+ minutes for large models)"),
                ("Test model functionality", "Run: ollama run [model-name] 'Hello, how are you?'",
                 "Model should respond with a greeting"),
                ("Check system resources", "Monitor RAM usage; models require 4-8GB+ of available memory",
                 "Sufficient memory should be available for the model"),
                ("Try a smaller model if resources are limited", "Consider using 'llama2:7b' instead of larger variants",
                 "Smaller model should load and run successfully"),
            ),
            additional_resources=[
                ResourceLink(title="Ollama Model Library", url="https://ollama.ai/library"),
            ],
        ))

        self.register_guide("DOCUMENT_PROCESSING_FAILED", TroubleshootingGuide(
            title="Document Processing Failed",
            description=(
                "The system failed to process your document. This could be due to file "
                "format issues, corruption, or processing limitations."
            ),
            category=ErrorCategory.DOCUMENT_PROCESSING,
            estimated_time="5-10 minutes",
            difficulty="beginner",
            steps=_steps(
                ("Check file format", "Verify the file is in a supported format (PDF, DOCX, TXT, MD)",
                 "File should have a supported extension and be readable"),
                ("Test file integrity", "Try opening the file in its native application",
                 "File should open without errors"),
                ("Check file size", "Ensure file is under 100MB and has a reasonable page count",
                 "File should be within processing limits"),
                ("Try with a simpler document", "Test with a basic text document to isolate the issue",
                 "Simple document should process successfully"),
                ("Convert to supported format", "If using an unsupported format, convert to PDF or DOCX",
                 "Converted file should process successfully"),
            ),
        ))

        self.register_guide("WORKFLOW_EXECUTION_FAILED", TroubleshootingGuide(
            title="Workflow Execution Failed",
            description=(
                "An automated workflow failed to complete. This may be due to "
                "configuration issues, dependency failures, or resource constraints."
            ),
            category=ErrorCategory.WORKFLOW,
            estimated_time="10-20 minutes",
            difficulty="intermediate",
            steps=_steps(
                ("Check workflow configuration", "Review the workflow definition for missing parameters",
                 "Configuration should be valid with all required fields"),
                ("Verify dependencies", "Ensure Ollama and other required services are running",
                 "All dependencies should be accessible and healthy"),
                ("Check input data", "Verify that input files and parameters are valid and accessible",
                 "All input data should be present and in correct format"),
                ("Review logs", "Check application logs for specific error messages",
                 "Logs should provide details about the failure point"),
                ("Test individual steps", "Run workflow steps individually to isolate the problem",
                 "Individual steps should complete successfully"),
            ),
        ))

        self.register_guide("FILE_SYSTEM_ERROR", TroubleshootingGuide(
            title="File System Error",
            description=(
                "A file operation failed. This is typically caused by permissions, "
                "disk space or file locks."
            ),
            category=ErrorCategory.FILESYSTEM,
            estimated_time="5-15 minutes",
            difficulty="beginner",
            steps=_steps(
                ("Check file permissions", "Verify you have read/write access to the file and directory",
                 "You should have appropriate permissions for the operation"),
                ("Check disk space", "Ensure sufficient free disk space (at least 1GB recommended)",
                 "Adequate disk space should be available"),
                ("Check if file is in use", "Close any applications that might have the file open",
                 "File should not be locked by other processes"),
                ("Verify file path", "Check that the file path exists and is correctly specified",
                 "Path should be valid and accessible"),
                ("Try with a different location", "Test the operation with a file in a different directory",
                 "Operation should succeed with different location"),
            ),
        ))

        self.register_guide("CONFIGURATION_ERROR", TroubleshootingGuide(
            title="Configuration Error",
            description="The application configuration is invalid or missing required settings.",
            category=ErrorCategory.CONFIGURATION,
            estimated_time="5-10 minutes",
            difficulty="intermediate",
            steps=_steps(
                ("Check configuration file exists", "Verify the .env file is present in the expected location",
                 "Configuration file should exist and be readable"),
                ("Validate configuration syntax", "Check that every line is a KEY=value pair",
                 "Configuration should parse without syntax errors"),
                ("Verify required settings", "Ensure all required configuration keys are present",
                 "All mandatory settings should be configured"),
                ("Check setting values", "Verify configuration values are within valid ranges",
                 "All values should be appropriate for their settings"),
                ("Reset to defaults", "If issues persist, remove overrides to fall back to default values",
                 "Application should work with default configuration"),
            ),
        ))
