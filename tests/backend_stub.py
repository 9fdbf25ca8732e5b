"""
In-process stand-in for the Granite backend.

Implements the /sql and /storage routes with an in-memory object store that
paginates like S3 (sorted keys, start-after continuation tokens). SQL
responses are scripted per test.
"""

import base64
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class SQLRequest(BaseModel):
    query: str
    params: List[Any] = []
    dsn: Optional[str] = None


class CreateContainerRequest(BaseModel):
    name: str


class ListObjectsRequest(BaseModel):
    container: str
    prefix: str = ""
    delimiter: str = "/"
    maxKeys: int = 1000
    continuationToken: Optional[str] = None


class ObjectRequest(BaseModel):
    container: str
    key: str


class PresignRequest(BaseModel):
    container: str
    key: str
    expiresIn: int = 3600


class DeleteObjectsRequest(BaseModel):
    container: str
    keys: List[str] = []


def encode_token(key: str) -> str:
    return base64.urlsafe_b64encode(key.encode()).decode()


def decode_token(token: str) -> str:
    return base64.urlsafe_b64decode(token.encode()).decode()


class StubBackend:
    """State and scripting hooks shared by the stub routes and the tests."""

    def __init__(self):
        self.sql_connections: Dict[str, str] = {}
        self.storage_connections: Dict[str, str] = {}
        self.containers: Dict[str, Dict[str, dict]] = {}
        self.sql_responses: List[Tuple[str, int, Any]] = []
        self.calls: List[Tuple[str, str, dict]] = []
        self.deleted_keys: List[str] = []
        self.on_request: Optional[Callable[[str, dict], None]] = None
        # Misbehaviours
        self.omit_tokens = False
        self.ignore_deletes = False

    # -- setup ---------------------------------------------------------------

    def add_sql_connection(self, connection_id: str, driver: str = "postgres"):
        self.sql_connections[connection_id] = driver

    def add_storage_connection(self, connection_id: str, provider: str = "s3"):
        self.storage_connections[connection_id] = provider

    def add_objects(self, container: str, *keys: str, size: int = 10):
        objects = self.containers.setdefault(container, {})
        for key in keys:
            objects[key] = {
                "key": key,
                "size": 0 if key.endswith("/") else size,
                "lastModified": "2024-05-01T12:00:00Z",
                "etag": f'"{abs(hash(key)) % 10**8:08d}"',
                "contentType": "application/octet-stream",
            }

    def respond(self, match: str, payload: Any = None, status: int = 200):
        """Answer SQL whose text contains `match`. Later registrations win."""
        self.sql_responses.insert(0, (match, status, payload))

    # -- inspection ----------------------------------------------------------

    def calls_to(self, route: str) -> List[dict]:
        return [body for name, _, body in self.calls if name == route]

    def record(self, route: str, connection_id: str, body: dict):
        self.calls.append((route, connection_id, body))
        if self.on_request is not None:
            self.on_request(route, body)

    # -- behaviour -----------------------------------------------------------

    def sql_response(self, query: str) -> Tuple[int, Any]:
        for match, status, payload in self.sql_responses:
            if match in query:
                return status, payload
        return 200, {}

    def list_objects(self, req: ListObjectsRequest) -> dict:
        if req.container not in self.containers:
            raise HTTPException(status_code=404, detail=f"container {req.container} not found")

        keys = sorted(k for k in self.containers[req.container] if k.startswith(req.prefix))
        if req.continuationToken:
            start_after = decode_token(req.continuationToken)
            keys = [k for k in keys if k > start_after]

        objects: List[dict] = []
        prefixes: List[str] = []
        last = None
        truncated = False

        for key in keys:
            if req.delimiter:
                rest = key[len(req.prefix):]
                index = rest.find(req.delimiter)
                if index >= 0:
                    common = req.prefix + rest[:index + len(req.delimiter)]
                    if common in prefixes:
                        last = key
                        continue
                    if len(objects) + len(prefixes) >= req.maxKeys:
                        truncated = True
                        break
                    prefixes.append(common)
                    last = key
                    continue
                if key == req.prefix:
                    last = key
                    continue

            if len(objects) + len(prefixes) >= req.maxKeys:
                truncated = True
                break
            meta = self.containers[req.container][key]
            objects.append({
                **meta,
                "name": key.rstrip("/").rsplit("/", 1)[-1],
                "isFolder": key.endswith("/"),
            })
            last = key

        result = {"objects": objects, "prefixes": prefixes, "isTruncated": truncated}
        if truncated and last is not None and not self.omit_tokens:
            result["continuationToken"] = encode_token(last)
        return result


def create_app(backend: StubBackend) -> FastAPI:
    app = FastAPI(title="Granite backend stub")

    @app.exception_handler(HTTPException)
    async def message_body(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

    def require_sql(connection_id: str):
        if connection_id not in backend.sql_connections:
            raise HTTPException(status_code=404, detail="connection not found")

    def require_storage(connection_id: str):
        if connection_id in backend.sql_connections:
            raise HTTPException(status_code=400, detail="connection is not a storage connection")
        if connection_id not in backend.storage_connections:
            raise HTTPException(status_code=404, detail="connection not found")

    def require_object(container: str, key: str) -> dict:
        objects = backend.containers.get(container)
        if objects is None or key not in objects:
            raise HTTPException(status_code=404, detail=f"object {key} not found")
        return objects[key]

    # -- SQL -----------------------------------------------------------------

    async def run_sql(route: str, connection_id: str, req: SQLRequest):
        require_sql(connection_id)
        backend.record(route, connection_id, req.model_dump())
        status, payload = backend.sql_response(req.query)
        if status >= 400:
            raise HTTPException(status_code=status, detail=(payload or {}).get("message", "query failed"))
        return payload

    @app.post("/sql/{connection_id}/query")
    async def sql_query(connection_id: str, req: SQLRequest):
        return await run_sql("query", connection_id, req)

    @app.post("/sql/{connection_id}/execute")
    async def sql_execute(connection_id: str, req: SQLRequest):
        return await run_sql("execute", connection_id, req)

    # -- storage -------------------------------------------------------------

    @app.post("/storage/{connection_id}/containers")
    async def list_containers(connection_id: str):
        require_storage(connection_id)
        backend.record("containers", connection_id, {})
        return [
            {"name": name, "createdAt": "2024-01-01T00:00:00Z", "region": "us-east-1"}
            for name in sorted(backend.containers)
        ]

    @app.post("/storage/{connection_id}/containers/create")
    async def create_container(connection_id: str, req: CreateContainerRequest):
        require_storage(connection_id)
        backend.record("containers/create", connection_id, req.model_dump())
        if req.name in backend.containers:
            raise HTTPException(status_code=409, detail=f"container {req.name} already exists")
        backend.containers[req.name] = {}
        return {"status": "created"}

    @app.post("/storage/{connection_id}/objects")
    async def list_objects(connection_id: str, req: ListObjectsRequest):
        require_storage(connection_id)
        backend.record("objects", connection_id, req.model_dump())
        return backend.list_objects(req)

    @app.post("/storage/{connection_id}/object/details")
    async def object_details(connection_id: str, req: ObjectRequest):
        require_storage(connection_id)
        backend.record("object/details", connection_id, req.model_dump())
        meta = require_object(req.container, req.key)
        details = {**meta, "metadata": {"owner": "tests"}}
        if backend.storage_connections[connection_id] == "azure-blob":
            details.update({"accessTier": "Hot", "blobType": "BlockBlob"})
        else:
            details.update({"storageClass": "STANDARD", "versionId": "v1"})
        return details

    @app.post("/storage/{connection_id}/object/presign")
    async def presign(connection_id: str, req: PresignRequest):
        require_storage(connection_id)
        backend.record("object/presign", connection_id, req.model_dump())
        require_object(req.container, req.key)
        return {"url": f"https://stub.example/{req.container}/{req.key}?expires={req.expiresIn}"}

    @app.post("/storage/{connection_id}/object/delete")
    async def delete_objects(connection_id: str, req: DeleteObjectsRequest):
        require_storage(connection_id)
        backend.record("object/delete", connection_id, req.model_dump())
        if not req.keys:
            raise HTTPException(status_code=400, detail="no keys provided")
        backend.deleted_keys.extend(req.keys)
        if not backend.ignore_deletes:
            objects = backend.containers.get(req.container, {})
            for key in req.keys:
                objects.pop(key, None)
        return {"deleted": len(req.keys)}

    @app.post("/storage/{connection_id}/upload")
    async def upload(
        connection_id: str,
        file: UploadFile = File(...),
        container: str = Form(...),
        key: str = Form(...)
    ):
        require_storage(connection_id)
        content = await file.read()
        backend.record("upload", connection_id, {
            "container": container,
            "key": key,
            "filename": file.filename,
            "contentType": file.content_type,
            "content": content,
        })
        backend.add_objects(container, key, size=len(content))
        return {"key": key}

    return app
