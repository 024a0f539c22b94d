from pydantic import BaseModel

class Message(BaseModel):
    """Generic message response schema"""
    ok: bool = True
    message: str
