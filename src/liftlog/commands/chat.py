"""Coaching chat history commands."""

import click

from ..models import ChatRole
from .base import echo_info, echo_success, open_store


@click.group()
def chat():
    """Keep notes from coaching conversations."""
    pass


@chat.command(name="list")
@click.option("--all", "show_all", is_flag=True, help="List conversations instead")
@click.pass_context
def list_chat(ctx: click.Context, show_all: bool):
    """Show the active conversation."""
    with open_store(ctx) as store:
        conversations = store.conversations
        active = store.state.active_conversation

    if show_all:
        for c in conversations:
            marker = "*" if active and c.id == active.id else " "
            click.echo(f"{marker} {c.id[:8]}  {c.title}  ({len(c.messages)} messages)")
        return

    if active is None or not active.messages:
        echo_info("No messages yet")
        return
    for m in active.messages:
        if m.role is ChatRole.USER:
            who = click.style("you", fg="cyan")
        else:
            who = click.style("coach", fg="green")
        click.echo(f"[{m.timestamp:%Y-%m-%d %H:%M}] {who}: {m.content}")


@chat.command(name="add")
@click.argument("content")
@click.option(
    "--role",
    type=click.Choice([r.value for r in ChatRole]),
    default=ChatRole.USER.value,
    help="Who said it",
)
@click.pass_context
def add_message(ctx: click.Context, content: str, role: str):
    """Append a message to the active conversation."""
    with open_store(ctx) as store:
        store.add_chat_message(role, content)
    echo_success("Message saved")


@chat.command(name="new")
@click.option("--title", default="Coaching chat", help="Conversation title")
@click.pass_context
def new_conversation(ctx: click.Context, title: str):
    """Start a new conversation and make it active."""
    with open_store(ctx) as store:
        conversation = store.start_conversation(title)
    echo_success(f"Started conversation {conversation.id[:8]}")


@chat.command(name="clear")
@click.pass_context
def clear_chat(ctx: click.Context):
    """Clear the messages of the active conversation."""
    with open_store(ctx) as store:
        store.clear_chat_history()
    echo_success("Chat history cleared")
