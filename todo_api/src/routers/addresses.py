"""
Address router.

All endpoints require authentication. Creating an address makes it the
caller's current address.
"""

import structlog
from typing import Any, Dict, Optional
from uuid import UUID
from fastapi import APIRouter, Body, Depends, status

from todo_api.src.dependencies import get_address_repository, get_list_params
from todo_api.src.middleware.auth import get_current_user
from todo_api.src.models.address import AddressPatch
from todo_api.src.models.auth import CurrentUser
from todo_api.src.models.common import ErrorResponse, envelope
from todo_api.src.repositories.address_repo import AddressRepository
from todo_api.src.services.crud import (
    apply_patch, delete_owned, fetch_page, get_or_404, list_query, update_owned,
    validate_or_raise
)
from todo_api.src.services.validation import rules

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/addresses",
    tags=["Addresses"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Forbidden"},
        404: {"model": ErrorResponse, "description": "Not Found"}
    }
)

ADDRESS_FILTERS = ("street", "city", "state", "zip", "country", "user_id")
ADDRESS_SORTS = ("id", "street", "city", "state", "zip", "country", "current")

ADDRESS_SCHEMA = rules({
    "street": "string|required",
    "city": "string|required",
    "state": "string|required",
    "zip": "string|required",
    "country": "string|required",
})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create Address")
async def create_address(
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    address_repo: AddressRepository = Depends(get_address_repository)
) -> Dict[str, Any]:
    """
    Create an address for the caller.

    The new address becomes the current one; a previously current address
    is demoted in the same transaction.
    """
    values = validate_or_raise(ADDRESS_SCHEMA, body)
    address = await address_repo.create_current(current_user.id, values)
    logger.info("address_created", address_id=str(address.id), user_id=str(current_user.id))
    return envelope(address, "New address created successfully")


@router.post("/get", summary="List Addresses")
async def list_addresses(
    body: Optional[Dict[str, Any]] = Body(None),
    params: Dict[str, Any] = Depends(get_list_params),
    current_user: CurrentUser = Depends(get_current_user),
    address_repo: AddressRepository = Depends(get_address_repository)
) -> Dict[str, Any]:
    query = list_query(ADDRESS_FILTERS, ADDRESS_SORTS, body, params)
    addresses, pagination = await fetch_page(address_repo, query)
    return envelope(addresses, "Addresses fetched successfully", pagination=pagination)


@router.get("/{address_id}", summary="Get Address")
async def get_address(
    address_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    address_repo: AddressRepository = Depends(get_address_repository)
) -> Dict[str, Any]:
    address = await get_or_404(address_repo, address_id, "address")
    return envelope(address, f"Address with {address_id} fetched successfully")


@router.put("/{address_id}", summary="Update Address")
async def update_address(
    address_id: UUID,
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    address_repo: AddressRepository = Depends(get_address_repository)
) -> Dict[str, Any]:
    values = apply_patch(AddressPatch, body)
    address = await update_owned(address_repo, address_id, current_user.id, values, "address")
    return envelope(address, "Address updated successfully")


@router.delete("/{address_id}", summary="Delete Address")
async def delete_address(
    address_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    address_repo: AddressRepository = Depends(get_address_repository)
) -> Dict[str, Any]:
    address = await delete_owned(address_repo, address_id, current_user.id, "address")
    return envelope(address, f"Address with {address_id} deleted successfully")
