"""Console chat against the store assistant. Empty line or Ctrl-D exits."""

import asyncio

from storeai_core.api.service import close_chat_session, open_chat_session, send_chat_message


async def main() -> None:
    session = open_chat_session()
    print("Assistant:", session.state.messages[0].content)
    try:
        while True:
            try:
                text = input("You: ")
            except EOFError:
                break
            if not text.strip():
                break
            turn = await send_chat_message(session, text)
            if turn["notification"]:
                print("[!]", turn["notification"])
            reply = turn["assistant_message"]
            if reply:
                print(f"Assistant [{turn['outcome']}]:", reply["content"])
    finally:
        close_chat_session(session)


if __name__ == "__main__":
    asyncio.run(main())
