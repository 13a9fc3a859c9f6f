"""derivcast: publish "generate derivative" requests for content mutations.

On an entity save, derivcast resolves where a derivative's source lives
and where the result should go, builds a canonical ActivityStreams-style
event, signs it with a short-lived JWT, and publishes it to a broker queue
for stateless conversion workers.

  - Mapping strategies: semantic tag, field to field, field to bundle
  - Token-templated storage paths (``[date:custom:Y]/[node:nid].jpg``)
  - Strict abort-before-publish error handling
  - STOMP and in-process local queue publishers
"""

__version__ = "0.1.0"
__description__ = "Publish derivative-generation requests to a message broker"

from derivcast.core.dispatcher import Dispatcher, DispatchResult
from derivcast.core.trigger import EntityMutation, MutationKind, TriggerSource
from derivcast.core.validation import TaskConfigValidator

__all__ = [
    "DispatchResult",
    "Dispatcher",
    "EntityMutation",
    "MutationKind",
    "TaskConfigValidator",
    "TriggerSource",
    "__version__",
]
