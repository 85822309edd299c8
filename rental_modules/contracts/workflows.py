"""Contract lifecycle workflows.

Stored-status state machines for rental and supply contracts.  The
display status shown to operators is derived separately
(``calculations.classify_contract``); these workflows only govern which
stored transitions a service may perform.
"""

from rental_kernel.domain.workflow import Guard, Transition, Workflow
from rental_kernel.logging_config import get_logger

logger = get_logger("modules.contracts.workflows")


PERIOD_AVAILABLE = Guard("period_available", "No other live contract covers the period")
HAS_END_DATE = Guard("has_end_date", "Contract end date is known")


RENTAL_CONTRACT_LIFECYCLE = Workflow(
    name="rental_contract_lifecycle",
    description="Tenant contract on a unit",
    initial_state="draft",
    states=("draft", "active", "expired", "terminated", "renewed"),
    transitions=(
        Transition("draft", "active", action="activate", guard=PERIOD_AVAILABLE),
        Transition("active", "terminated", action="terminate"),
        Transition("active", "renewed", action="renew", guard=HAS_END_DATE),
        Transition("active", "expired", action="expire"),
    ),
    terminal_states=("expired", "terminated", "renewed"),
)

SUPPLY_CONTRACT_LIFECYCLE = Workflow(
    name="supply_contract_lifecycle",
    description="Owner contract on a property",
    initial_state="draft",
    states=("draft", "active", "suspended", "expired", "terminated"),
    transitions=(
        Transition("draft", "active", action="activate", guard=PERIOD_AVAILABLE),
        Transition("active", "suspended", action="suspend"),
        Transition("suspended", "active", action="resume"),
        Transition("active", "terminated", action="terminate"),
        Transition("active", "expired", action="expire"),
    ),
    terminal_states=("expired", "terminated"),
)

for _workflow in (RENTAL_CONTRACT_LIFECYCLE, SUPPLY_CONTRACT_LIFECYCLE):
    logger.debug(
        "contract_workflow_registered",
        extra={
            "workflow_name": _workflow.name,
            "state_count": len(_workflow.states),
            "transition_count": len(_workflow.transitions),
        },
    )
