from fastapi import FastAPI
from pydantic import BaseModel
from typing import List
import re

app = FastAPI(title="Mock Negotiation Collaborators", version="1.0.0")

AGREEMENT = re.compile(r"\b(yes|works|agree|deal|sounds good)\b", re.IGNORECASE)
QUALIFYING = ("termination", "unemployment", "medical", "layoff", "reduced")


class Message(BaseModel):
    role: str
    content: str


class CompletionRequest(BaseModel):
    model: str = "mock"
    messages: List[Message]


class Document(BaseModel):
    name: str
    type: str
    size: int
    data_url: str = ""


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/v1/chat/completions")
def complete(body: CompletionRequest):
    """Echo the offer from the system context; send the link if the user agreed"""
    system = body.messages[0].content if body.messages else ""
    last_user = next((m.content for m in reversed(body.messages) if m.role == "user"), "")

    offer = re.search(r"CURRENT OFFER:\n- (.+)\n", system)
    link = re.search(r"^\s+(\S*payments\?\S+)$", system, re.MULTILINE)
    if offer and link and AGREEMENT.search(last_user):
        content = f"Wonderful! Here's your payment link: {link.group(1)}"
    elif offer:
        content = f"How about {offer.group(1)} Does that work for you?"
    else:
        content = "Could you tell me your monthly income so I can suggest a plan?"

    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@app.post("/classify")
def classify(doc: Document):
    approved = any(word in doc.name.lower() for word in QUALIFYING)
    return {"approved": approved, "reason_label": "qualifying_hardship" if approved else "not_hardship_evidence"}
