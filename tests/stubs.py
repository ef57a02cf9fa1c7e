"""Recording tool and memory stubs shared by the test modules."""

import asyncio
import time

from hivelang.tools.registry import ToolDescriptor, ToolResult


class RecordingTool:
    def __init__(self, name, capability=None, output="ok", data=None, success=True, delay=0.0, raises=None):
        self.name = name
        self.capability = capability or name
        self.description = f"stub for {name}"
        self.output = output
        self.data = data
        self.success = success
        self.delay = delay
        self.raises = raises
        self.calls = []

    async def run(self, input, context):
        self.calls.append(input)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        return {"success": self.success, "output": self.output, "data": self.data}


class EchoAI:
    name = "ai.respond"
    capability = "ai.respond"
    description = "echoes the prompt"

    def __init__(self):
        self.calls = []

    def run(self, input, context):
        self.calls.append(input)
        return ToolResult(success=True, output=f"AI: {input['prompt']}", data={"model": input.get("model")})


class RecordingMemory:
    def __init__(self, initial=None):
        self.data = dict(initial or {})
        self.calls = []

    def get(self, key):
        self.calls.append(("get", key))
        return self.data.get(key)

    def set(self, key, value):
        self.calls.append(("set", key, value))
        self.data[key] = value

    def append(self, key, value):
        self.calls.append(("append", key, value))
        self.data.setdefault(key, []).append(value)


class FailingMemory:
    def get(self, key):
        raise ConnectionError("backend down")

    def set(self, key, value):
        raise ConnectionError("backend down")

    def append(self, key, value):
        raise ConnectionError("backend down")


def _greet(input, context):
    return {"success": True, "output": f"hello {input.get('name', 'there')}"}


GREETER = ToolDescriptor(name="demo.greet", capability="demo.greeting", description="Greets", handler=_greet)

DEMO_TOOLS = [GREETER]


class BlockingTool:
    """Sync tool that blocks its thread, like a client library without async support."""

    def __init__(self, name, delay, output="late"):
        self.name = name
        self.capability = name
        self.description = f"blocking stub for {name}"
        self.delay = delay
        self.output = output
        self.calls = []

    def run(self, input, context):
        self.calls.append(input)
        time.sleep(self.delay)
        return {"success": True, "output": self.output}


class BlockingMemory(RecordingMemory):
    def __init__(self, delay, initial=None):
        super().__init__(initial)
        self.delay = delay

    def get(self, key):
        time.sleep(self.delay)
        return super().get(key)
