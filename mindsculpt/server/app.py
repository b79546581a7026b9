import os
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mindsculpt.errors import MemoryNotFoundError, TraitValidationError
from mindsculpt.logging_config import setup_logging
from mindsculpt.retrieval.search import SearchCriteria
from mindsculpt.runtime import MindSculptRuntime
from mindsculpt.settings import build_config


class LinkRequest(BaseModel):
    target_id: str


class TraitRequest(BaseModel):
    value: Any


class ValueRequest(BaseModel):
    value: str


class ClassifyRequest(BaseModel):
    text: str
    user_context: str | None = None


class ClassifyBatchRequest(BaseModel):
    texts: list[str]


class SimilarityRequest(BaseModel):
    text_a: str
    text_b: str


class PromptRequest(BaseModel):
    user_message: str
    context: str = ""
    criteria: dict[str, Any] | None = None


class InteractionRequest(BaseModel):
    user_message: str
    agent_response: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class RespondRequest(BaseModel):
    user_message: str
    context: str = ""


def create_app(runtime: MindSculptRuntime | None = None) -> FastAPI:
    if runtime is None:
        config = build_config(os.getenv("MINDSCULPT_CONFIG_PATH"))
        setup_logging(config.log_level)
        runtime = MindSculptRuntime(config)

    app = FastAPI(title="MindSculpt")
    app.state.runtime = runtime
    store = runtime.store
    personality = runtime.personality

    @app.exception_handler(MemoryNotFoundError)
    async def _not_found(request: Request, exc: MemoryNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(TraitValidationError)
    async def _invalid_trait(request: Request, exc: TraitValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def _bad_request(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.post("/memories", status_code=201)
    async def create_memory(payload: dict[str, Any] = Body(...)):
        memory = await store.create(payload)
        return memory.to_payload()

    @app.get("/memories")
    async def list_memories():
        return [memory.to_payload() for memory in await store.get_all()]

    @app.post("/memories/search")
    async def search_memories(payload: dict[str, Any] | None = Body(default=None)):
        criteria = SearchCriteria.from_payload(payload or {})
        return [memory.to_payload() for memory in await store.search(criteria)]

    @app.get("/memories/{memory_id}")
    async def get_memory(memory_id: str):
        memory = await store.get(memory_id)
        if memory is None:
            raise HTTPException(status_code=404, detail=f"Memory with id {memory_id} not found")
        return memory.to_payload()

    @app.patch("/memories/{memory_id}")
    async def update_memory(memory_id: str, payload: dict[str, Any] = Body(...)):
        memory = await store.update(memory_id, payload)
        return memory.to_payload()

    @app.delete("/memories/{memory_id}", status_code=204)
    async def delete_memory(memory_id: str):
        await store.delete(memory_id)

    @app.post("/memories/{memory_id}/links", status_code=204)
    async def link_memories(memory_id: str, req: LinkRequest):
        await store.link(memory_id, req.target_id)

    @app.get("/graph")
    async def memory_graph():
        return (await store.graph()).to_payload()

    @app.get("/personality")
    async def get_personality():
        return (await personality.get()).to_payload()

    @app.patch("/personality")
    async def update_personality(payload: dict[str, Any] = Body(...)):
        return (await personality.update(payload)).to_payload()

    @app.put("/personality/traits/{name}")
    async def update_trait(name: str, req: TraitRequest):
        return (await personality.update_trait(name, req.value)).to_payload()

    @app.post("/personality/values")
    async def add_value(req: ValueRequest):
        return (await personality.add_value(req.value)).to_payload()

    @app.delete("/personality/values/{value}")
    async def remove_value(value: str):
        return (await personality.remove_value(value)).to_payload()

    @app.patch("/personality/communication")
    async def update_communication(payload: dict[str, Any] = Body(...)):
        return (await personality.update_communication_style(payload)).to_payload()

    @app.post("/classify")
    async def classify(req: ClassifyRequest):
        result = await runtime.classifier.classify(req.text, req.user_context)
        return result.to_payload()

    @app.post("/classify/batch")
    async def classify_batch(req: ClassifyBatchRequest):
        results = await runtime.classifier.classify_batch(req.texts)
        return [result.to_payload() for result in results]

    @app.post("/similarity")
    async def similarity(req: SimilarityRequest):
        return {"similarity": await runtime.classifier.similarity(req.text_a, req.text_b)}

    @app.post("/prompt")
    async def build_prompt(req: PromptRequest):
        criteria = SearchCriteria.from_payload(req.criteria) if req.criteria is not None else None
        return {"prompt": await runtime.prompts.build(req.user_message, req.context, criteria)}

    @app.post("/interactions", status_code=201)
    async def record_interaction(req: InteractionRequest):
        memory = await runtime.pipeline.record_interaction(
            req.user_message, req.agent_response, req.metadata
        )
        return memory.to_payload()

    @app.post("/respond")
    async def respond(req: RespondRequest):
        return {"reply": await runtime.respond(req.user_message, req.context)}

    return app
