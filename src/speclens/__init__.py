"""speclens -- load an OpenAPI/Swagger document once, query it cheaply many times.

A caller opens a *session* on an OpenAPI 3.x or Swagger 2.0 document (local
file or URL) and then asks selective questions about it -- which endpoints
exist, what a single endpoint accepts and returns, which tags and reusable
components are declared -- without re-parsing or re-sending the whole
document every time.

Typical workflow::

    speclens init openapi.yaml           # prints a session id
    speclens endpoints -s <id> --tag pets
    speclens endpoint -s <id> /pets/{petId} get

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and the session index location.
    session: Session lifecycle and the persisted session index.
    query: Structural queries over a loaded specification.
    schema: Depth-bounded schema formatter.
    render: The four interchangeable output renderers.
    docs: Standalone Markdown/HTML documentation generator.
    tools: Tool-call dispatch surface returning text payloads.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
