"""``speclens docs`` -- write standalone documentation for the session."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from speclens.commands.common import get_engine, handle_errors, require_session_id
from speclens.docs import DocumentationGenerator
from speclens.exceptions import InvalidUsageError
from speclens.models import DocumentationFormat, DocumentationOptions
from speclens.output import print_result, success


def docs_command(
    ctx: typer.Context,
    output_dir: Path = typer.Option(
        Path("."), "--output-dir", "-d", help="Directory to write into (created if missing)."
    ),
    filename: Optional[str] = typer.Option(
        None, "--filename", help="File name; the extension is corrected to match the format."
    ),
    doc_format: str = typer.Option("markdown", "--doc-format", help="markdown or html."),
    toc: bool = typer.Option(True, "--toc/--no-toc", help="Include a table of contents."),
    endpoints: bool = typer.Option(True, "--endpoints/--no-endpoints", help="Include endpoints."),
    components: bool = typer.Option(True, "--components/--no-components", help="Include components."),
    security: bool = typer.Option(True, "--security/--no-security", help="Include security requirements."),
    examples: bool = typer.Option(False, "--examples/--no-examples", help="Include examples."),
    group_by_tags: bool = typer.Option(True, "--group-by-tags/--flat", help="Group endpoints by tag."),
) -> None:
    """Generate Markdown or single-page HTML documentation and print its path.

    Example::

        speclens docs --doc-format html --output-dir site/
    """
    with handle_errors():
        try:
            fmt = DocumentationFormat(doc_format.strip().lower())
        except ValueError:
            raise InvalidUsageError(f"Unknown documentation format '{doc_format}'. Choose markdown or html.") from None

        options = DocumentationOptions(
            output_directory=output_dir,
            filename=filename,
            format=fmt,
            include_table_of_contents=toc,
            include_endpoints=endpoints,
            include_components=components,
            include_security=security,
            include_examples=examples,
            group_by_tags=group_by_tags,
        )
        path = DocumentationGenerator(get_engine(ctx)).generate(require_session_id(ctx), options)
        success(f"Documentation written to {path}")
        print_result(str(path))
