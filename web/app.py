"""FastAPI web application for the paper knowledge graph.

Exposes paper ingestion and the graph query surface over HTTP, and pushes a
notification over WebSocket whenever the graph changes so viewers can refresh.
"""

import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import Response
from pydantic import BaseModel

from papergraph.errors import FormatError
from papergraph.graph import KnowledgeGraph
from papergraph.viz import prepare_viz_data

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "research-graph.json"


class PaperSubmission(BaseModel):
    paper: dict
    analysis: Optional[dict] = None


def create_app(graph: Optional[KnowledgeGraph] = None) -> FastAPI:
    """Create and configure the FastAPI application around one graph instance."""
    app = FastAPI(title="Research Paper Graph")
    app.state.graph = graph if graph is not None else KnowledgeGraph()
    # Connected graph viewers of this app
    app.state.ws_connections = []

    def _graph() -> KnowledgeGraph:
        return app.state.graph

    @app.get("/api/graph")
    async def get_graph():
        return await asyncio.to_thread(_graph().to_dict)

    @app.get("/api/graph/viz")
    async def get_viz(min_degree: int = 0, kind: Optional[str] = None):
        snapshot = await asyncio.to_thread(_graph().get_graph)
        return prepare_viz_data(snapshot, min_degree=min_degree, kind=kind)

    @app.post("/api/papers", status_code=201)
    async def add_paper(submission: PaperSubmission):
        if submission.paper.get("id") in (None, ""):
            raise HTTPException(status_code=400, detail="Paper record needs an id")

        node = await asyncio.to_thread(
            _graph().add_paper, submission.paper, submission.analysis
        )
        await _broadcast_update(app)
        return node.to_dict()

    @app.get("/api/stats")
    async def get_stats():
        return await asyncio.to_thread(_graph().stats)

    @app.get("/api/search")
    async def search(q: str = ""):
        nodes = await asyncio.to_thread(_graph().search, q)
        return [n.to_dict() for n in nodes]

    @app.get("/api/nodes")
    async def list_nodes(kind: str):
        nodes = await asyncio.to_thread(_graph().filter_by_kind, kind)
        return [n.to_dict() for n in nodes]

    @app.get("/api/nodes/{node_id:path}/neighbors")
    async def get_neighbors(node_id: str):
        if await asyncio.to_thread(_graph().get_node, node_id) is None:
            raise HTTPException(status_code=404, detail="Node not found")
        nodes = await asyncio.to_thread(_graph().neighbors, node_id)
        return [n.to_dict() for n in nodes]

    @app.get("/api/export")
    async def export_graph():
        content = await asyncio.to_thread(_graph().export)
        return Response(
            content=content,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )

    @app.post("/api/import")
    async def import_graph(request: Request):
        body = await request.body()
        try:
            await asyncio.to_thread(_graph().import_graph, body)
        except FormatError as e:
            raise HTTPException(status_code=400, detail=str(e))
        await _broadcast_update(app)
        return await asyncio.to_thread(_graph().stats)

    @app.post("/api/reset")
    async def reset_graph():
        await asyncio.to_thread(_graph().reset)
        await _broadcast_update(app)
        return {"status": "reset"}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket.accept()
        app.state.ws_connections.append(websocket)

        try:
            await websocket.send_json({
                "type": "graph_updated",
                "stats": await asyncio.to_thread(_graph().stats),
            })

            # Keep connection open until client disconnects
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            if websocket in app.state.ws_connections:
                app.state.ws_connections.remove(websocket)

    return app


async def _broadcast_update(app: FastAPI):
    """Tell every viewer connected to this app that its graph changed."""
    ws_connections = app.state.ws_connections
    if not ws_connections:
        return

    message = {
        "type": "graph_updated",
        "stats": await asyncio.to_thread(app.state.graph.stats),
    }

    dead = []
    for ws in list(ws_connections):
        try:
            await ws.send_json(message)
        except Exception as e:
            logger.warning("Dropping WebSocket viewer: %s", e)
            dead.append(ws)

    for ws in dead:
        if ws in ws_connections:
            ws_connections.remove(ws)


# Create the app instance for uvicorn
app = create_app()
