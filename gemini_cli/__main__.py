from .cli import app

app(prog_name="gemini-cli")
