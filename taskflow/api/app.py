"""FastAPI web application for taskflow."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from taskflow.database.database import get_db, init_db
from taskflow.database.repository import TaskRepository
from taskflow.engine.dashboard import DashboardSummary, dashboard_summary
from taskflow.engine.normalizer import normalize
from taskflow.engine.query import QueryResult, available_categories, available_tags, evaluate
from taskflow.integrations.openai_client import OpenAIClient
from taskflow.models.filters import TaskFilters
from taskflow.models.task import Task, TaskDraft, TaskStatus, TaskUpdate
from taskflow.store.change_feed import ChangeFeed
from taskflow.store.collection import MutationResult, TaskCollection

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield
    change_feed.close()


app = FastAPI(
    title="taskflow API",
    description="Natural-language task capture with filter, sort and group queries",
    version="0.1.0",
    lifespan=lifespan,
)

# Process-wide change feed (subscribers receive this process's writes)
change_feed = ChangeFeed()

_openai_client: Optional[OpenAIClient] = None


def get_openai_client() -> OpenAIClient:
    """Get or create OpenAI client instance."""
    global _openai_client
    if _openai_client is None:
        _openai_client = OpenAIClient()
    return _openai_client


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Resolve the calling user. Authentication happens upstream."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


def get_collection(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TaskCollection:
    """Load the caller's task collection."""
    repository = TaskRepository(db, feed=change_feed, user_id=user_id)
    collection = TaskCollection(repository, user_id)
    collection.refresh()
    return collection


# Request / response models
class ParseRequest(BaseModel):
    """Free text to normalize."""
    text: str = Field(..., min_length=1)
    now: Optional[datetime] = Field(None, description="Reference local time (defaults to server now)")


class FacetsResponse(BaseModel):
    categories: List[str]
    tags: List[str]


class DeleteResponse(BaseModel):
    deleted: str


class SummaryLineResponse(BaseModel):
    message: str


def _confirmed_task(result: MutationResult) -> Task:
    if not result.ok:
        raise HTTPException(status_code=502, detail=f"Task store rejected the change: {result.error}")
    return result.task


def _require_task(collection: TaskCollection, task_id: str) -> Task:
    task = collection.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return task


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/tasks", response_model=QueryResult)
def list_tasks(
    status: List[str] = Query(default=[]),
    priority: List[str] = Query(default=[]),
    category: List[str] = Query(default=[]),
    tags: List[str] = Query(default=[]),
    search: str = "",
    date_range: str = "all",
    sort_by: str = "latest",
    group_by: str = "none",
    now: Optional[datetime] = None,
    collection: TaskCollection = Depends(get_collection),
):
    """Filter, sort and group the caller's tasks."""
    filters = TaskFilters(
        status=status,
        priority=priority,
        category=category,
        tags=tags,
        search=search,
        date_range=date_range,
        sort_by=sort_by,
        group_by=group_by,
    )
    return evaluate(collection.tasks, filters, now=now)


@app.get("/tasks/facets", response_model=FacetsResponse)
def task_facets(collection: TaskCollection = Depends(get_collection)):
    """Categories and tags available for filtering."""
    return FacetsResponse(
        categories=available_categories(collection.tasks),
        tags=available_tags(collection.tasks),
    )


@app.post("/tasks", response_model=Task, status_code=201)
def create_task(draft: TaskDraft, collection: TaskCollection = Depends(get_collection)):
    """Create a task from a draft."""
    return _confirmed_task(collection.add(draft))


@app.post("/tasks/parse", response_model=TaskDraft)
async def parse_task(
    request: ParseRequest,
    client: OpenAIClient = Depends(get_openai_client),
):
    """Normalize free text into a draft without saving it."""
    return await normalize(request.text, request.now or datetime.now(), client)


@app.post("/tasks/smart", response_model=Task, status_code=201)
async def create_smart_task(
    request: ParseRequest,
    client: OpenAIClient = Depends(get_openai_client),
    collection: TaskCollection = Depends(get_collection),
):
    """Normalize free text and save the resulting task."""
    draft = await normalize(request.text, request.now or datetime.now(), client)
    return _confirmed_task(collection.add(draft))


@app.patch("/tasks/{task_id}", response_model=Task)
def update_task(task_id: str, changes: TaskUpdate, collection: TaskCollection = Depends(get_collection)):
    """Apply partial changes to a task."""
    _require_task(collection, task_id)
    return _confirmed_task(collection.update(task_id, changes))


@app.post("/tasks/{task_id}/toggle", response_model=Task)
def toggle_task(task_id: str, collection: TaskCollection = Depends(get_collection)):
    """Advance a task along todo -> in-progress -> done -> todo."""
    _require_task(collection, task_id)
    return _confirmed_task(collection.toggle_status(task_id))


@app.delete("/tasks/{task_id}", response_model=DeleteResponse)
def delete_task(task_id: str, collection: TaskCollection = Depends(get_collection)):
    """Delete a task."""
    _require_task(collection, task_id)
    _confirmed_task(collection.delete(task_id))
    return DeleteResponse(deleted=task_id)


@app.get("/dashboard", response_model=DashboardSummary)
def dashboard(now: Optional[datetime] = None, collection: TaskCollection = Depends(get_collection)):
    """Headline counts and today / overdue / upcoming sections."""
    return dashboard_summary(collection.tasks, now or datetime.now())


@app.get("/dashboard/summary", response_model=SummaryLineResponse)
async def dashboard_summary_line(
    client: OpenAIClient = Depends(get_openai_client),
    collection: TaskCollection = Depends(get_collection),
):
    """Short motivational line based on done vs. pending counts."""
    done = len(collection.by_status(TaskStatus.DONE))
    pending = len(collection.tasks) - done
    return SummaryLineResponse(message=await client.generate_daily_summary(done, pending))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
