from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from newsdesk.core.policy import Caller
from newsdesk.core.security import get_caller
from newsdesk.db.database import get_session
from newsdesk.models.deletion_request import DeletionRequestStatus
from newsdesk.schemas.deletion_request import DeletionRequestCreate, DeletionRequestResponse
from newsdesk.services import deletion_requests as request_service

router = APIRouter()

@router.post("", response_model=DeletionRequestResponse, status_code=status.HTTP_201_CREATED, summary="Ask for one of your published articles to be deleted")
def create_request(
    request_in: DeletionRequestCreate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """File a deletion request for your own published article"""
    request = request_service.create_request(session, caller, request_in.article_id, request_in.reason)
    return request_service.serialize(session, [request])[0]

@router.get("", response_model=List[DeletionRequestResponse], summary="List deletion requests")
def list_requests(
    status: Optional[DeletionRequestStatus] = Query(None, description="Only this status"),
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """List deletion requests, newest first (editor, admin)"""
    requests = request_service.list_requests(session, caller, status)
    return request_service.serialize(session, requests)

@router.get("/mine", response_model=List[DeletionRequestResponse], summary="List your own deletion requests")
def list_my_requests(
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """List the caller's deletion requests, newest first"""
    requests = request_service.list_my_requests(session, caller)
    return request_service.serialize(session, requests)

@router.post("/{request_id}:approve", response_model=DeletionRequestResponse, summary="Approve a deletion request and delete the article")
def approve_request(
    request_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Approve a pending request; the article is deleted"""
    request = request_service.approve_request(session, caller, request_id)
    return request_service.serialize(session, [request])[0]

@router.post("/{request_id}:reject", response_model=DeletionRequestResponse, summary="Reject a deletion request")
def reject_request(
    request_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Reject a pending request; the article stays"""
    request = request_service.reject_request(session, caller, request_id)
    return request_service.serialize(session, [request])[0]
