"""
api/routes/v1/packages.py -- Subscription package routes.

Routes:
  GET    /api/packages          -- list packages (public)
  GET    /api/packages/{id}     -- package detail (public)
  POST   /api/packages          -- create (admin only)
  PUT    /api/packages/{id}     -- partial update (admin only)
  DELETE /api/packages/{id}     -- delete (admin only; 409 while members use it)

package_name is unique. A duplicate on create or rename is a 409; renaming a
package to its own current name is allowed.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from api.models import MessageResponse, PackageResponse, RowId
from auth.dependencies import require_admin
from auth.models import Principal
from core.database import packages
from core.errors import NotFoundError, StoreError
from core.updates import plan_update
from gym.store import GymStore
from gym.validation import validate_package_create, validate_package_update

# Auth policy: reads are public, writes require admin.
router = APIRouter()


@router.get("/packages", response_model=list[PackageResponse])
def list_packages(request: Request) -> list[PackageResponse]:
    gym: GymStore = request.app.state.gym_store
    return [PackageResponse.from_package(p) for p in gym.list_packages()]


@router.get("/packages/{package_id}", response_model=PackageResponse)
def get_package(request: Request, package_id: RowId) -> PackageResponse:
    gym: GymStore = request.app.state.gym_store
    package = gym.get_package(package_id)
    if package is None:
        raise NotFoundError("package not found")
    return PackageResponse.from_package(package)


@router.post("/packages", response_model=PackageResponse, status_code=201)
def create_package(
    request: Request,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(require_admin),
) -> PackageResponse:
    """Create a package. Requires package_name, price and duration_days."""
    gym: GymStore = request.app.state.gym_store
    package = validate_package_create(payload, gym)
    package_id = gym.create_package(package)
    return PackageResponse.from_package(_reload(gym, package_id))


@router.put("/packages/{package_id}", response_model=PackageResponse)
def update_package(
    request: Request,
    package_id: RowId,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(require_admin),
) -> PackageResponse:
    """Apply a whitelisted partial update to a package."""
    gym: GymStore = request.app.state.gym_store
    fields = validate_package_update(payload, gym.get_package(package_id), gym)
    plan = plan_update(packages, packages.c.package_id, package_id, fields)
    if not gym.apply(plan):
        raise NotFoundError("package not found")
    return PackageResponse.from_package(_reload(gym, package_id))


@router.delete("/packages/{package_id}", response_model=MessageResponse)
def delete_package(
    request: Request,
    package_id: RowId,
    principal: Principal = Depends(require_admin),
) -> MessageResponse:
    gym: GymStore = request.app.state.gym_store
    if not gym.delete_package(package_id):
        raise NotFoundError("package not found")
    return MessageResponse(message="Package deleted successfully")


def _reload(gym: GymStore, package_id: int):
    package = gym.get_package(package_id)
    if package is None:
        raise StoreError("package not found after write")
    return package
