from typing import Annotated

from fastapi import Depends, Request

from ista_explorer.core.query.aggregate import AggregateFetcher
from ista_explorer.core.query.controller import QueryController


# Both objects are built once in the app lifespan and live on app.state
def get_controller(request: Request) -> QueryController:
    return request.app.state.controller


def get_fetcher(request: Request) -> AggregateFetcher:
    return request.app.state.fetcher


controller_dep = Annotated[QueryController, Depends(get_controller)]
fetcher_dep = Annotated[AggregateFetcher, Depends(get_fetcher)]
