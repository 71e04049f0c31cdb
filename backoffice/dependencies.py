from fastapi import Depends, HTTPException, status

from backoffice.auth import Principal, get_current_principal
from backoffice.pages.workspace import Workspace, workspace_for
from backoffice.schemas.records import DataType


def get_workspace(principal: Principal = Depends(get_current_principal)) -> Workspace:
    return workspace_for(principal)


def parse_data_type(data_type: str) -> DataType:
    try:
        return DataType(data_type)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Unknown page') from None
