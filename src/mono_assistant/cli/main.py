import typer

from .commands import chat, key, provider

app = typer.Typer(help="Mono Assistant CLI: bring-your-own-key AI providers")

# Include sub-commands
app.add_typer(provider.app, name="provider", help="Manage AI providers")
app.add_typer(key.app, name="key", help="Manage provider API keys")
app.command(name="chat")(chat.chat)
app.command(name="transcribe")(chat.transcribe)
app.command(name="summarize")(chat.summarize)


def main():
    app()


if __name__ == "__main__":
    main()
