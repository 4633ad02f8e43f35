"""
Deterministic mock completion backend for local runs, demos, and tests.

This module provides a reference implementation of the completion interface so
the project can be executed end-to-end without any credentials or network access.
Replies are canned per lane and chosen by simple keyword checks on the latest
message, so the same input always yields the same output and every path of the
orchestrator (plain answers, fenced command proposals, approval and denial) can
be exercised reproducibly.
"""

import asyncio
from typing import List

from shared.models import Lane, Message
from .base import CompletionBackend, CompletionBackendError

STRATEGIC_STRUCTURE_RESPONSE = """For structuring your application, I recommend following a layered architecture:

1. **Presentation Layer**: Handle user interactions
2. **Business Logic Layer**: Core application logic
3. **Data Access Layer**: Database and external API interactions
4. **Cross-Cutting Concerns**: Logging, security, error handling

This separation of concerns will make your application more maintainable and testable. Would you like me to elaborate on any of these layers?"""

STRATEGIC_PRACTICE_RESPONSE = """Based on best practices, I recommend:

1. Start with a clear domain model
2. Use dependency injection for flexibility
3. Implement comprehensive error handling
4. Write tests as you develop
5. Document your architectural decisions

These practices will ensure your project remains maintainable as it grows. What specific aspect would you like to explore further?"""

STRATEGIC_API_RESPONSE = """For a REST API design, consider these principles:

1. **Resource-Based URLs**: Use nouns, not verbs (e.g., /users, not /getUsers)
2. **HTTP Methods**: GET (read), POST (create), PUT (update), DELETE (remove)
3. **Status Codes**: Use appropriate HTTP status codes
4. **Versioning**: Include version in URL or headers
5. **Documentation**: OpenAPI specification

This approach ensures a consistent and predictable API. Shall I help you design specific endpoints?"""

STRATEGIC_DEFAULT_RESPONSE = """I understand you're looking for strategic guidance. Let me analyze the situation:

The key consideration here is balancing immediate needs with long-term maintainability. I recommend starting with a simple, well-structured foundation that can evolve as requirements become clearer.

What specific aspects of this challenge would you like to explore?"""

IMPLEMENTATION_FUNCTION_RESPONSE = """I'll create that function for you:

```python
def process_data(items):
    if not isinstance(items, list):
        raise TypeError("items must be a list")
    return [{**item, "processed": True} for item in items]
```

This function includes input validation and returns a new list with processed items. Would you like me to add more specific functionality?"""

IMPLEMENTATION_ENDPOINT_RESPONSE = """Here's a REST endpoint implementation:

```python
@router.get("/api/users/{user_id}")
async def get_user(user_id: str):
    user = await user_service.find_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user
```

This endpoint includes error handling and appropriate status codes. Need me to implement other CRUD operations?"""

IMPLEMENTATION_DEBUG_RESPONSE = """I'll help you debug this issue. Based on the context, here are the steps:

1. First, let's check the error logs
2. Verify the input data format
3. Add logging statements at key points
4. Check for any async/await issues

Can you share the specific error message or problematic code?"""

IMPLEMENTATION_INSTALL_RESPONSE = """To install the required package, run:

```bash
npm install express
```

This will add Express.js to your project."""

IMPLEMENTATION_DEFAULT_RESPONSE = """I'll help you implement that. Here's a practical approach:

1. Define the interface/types first
2. Implement the core logic
3. Add error handling
4. Write unit tests

Let me know which part you'd like to start with, and I'll provide the specific implementation."""


class MockCompletionBackend(CompletionBackend):
    """
    In-memory mock implementation of `CompletionBackend` with deterministic behavior.

    Args:
        response_delay (float): Seconds to sleep before answering, to simulate
            network latency. Zero disables the sleep.
    """

    name = "mock"

    def __init__(self, response_delay: float = 0.1) -> None:
        self.response_delay = response_delay

    async def complete(self, history: List[Message], lane: Lane) -> str:
        if not history:
            raise CompletionBackendError(self.name, "cannot complete an empty history")

        if self.response_delay > 0:
            await asyncio.sleep(self.response_delay)

        content = history[-1].content.lower()
        if lane is Lane.STRATEGIC:
            return self._strategic_response(content)
        return self._implementation_response(content)

    @staticmethod
    def _strategic_response(content: str) -> str:
        if "structure" in content or "architect" in content:
            return STRATEGIC_STRUCTURE_RESPONSE
        if "should" in content or "best practice" in content:
            return STRATEGIC_PRACTICE_RESPONSE
        if "api" in content or "rest" in content:
            return STRATEGIC_API_RESPONSE
        return STRATEGIC_DEFAULT_RESPONSE

    @staticmethod
    def _implementation_response(content: str) -> str:
        if "create" in content or "implement" in content:
            if "function" in content:
                return IMPLEMENTATION_FUNCTION_RESPONSE
            if "rest" in content or "endpoint" in content:
                return IMPLEMENTATION_ENDPOINT_RESPONSE
        if "fix" in content or "debug" in content:
            return IMPLEMENTATION_DEBUG_RESPONSE
        if "install" in content or "npm" in content:
            return IMPLEMENTATION_INSTALL_RESPONSE
        return IMPLEMENTATION_DEFAULT_RESPONSE
