"""Stub conversion engines shared by the tests."""


class StubDirectEngine:
    """Direct engine returning canned bytes or raising a canned error."""

    def __init__(self, output=b"", error=None):
        self.output = output
        self.error = error
        self.calls = []

    def convert(self, data):
        self.calls.append(data)
        if self.error:
            raise self.error
        return self.output


class StubGroup:
    def __init__(self, payload, fragments=1, bounding_box=None):
        self.payload = payload
        self.fragments = [payload] * fragments
        self.bounding_box = bounding_box


class StubGroupEngine:
    """Group-loading engine that loads one group per call with a canned payload."""

    def __init__(self, payload=None, fragments=1):
        self.groups = {}
        self.payload = payload
        self.fragments = fragments
        self.loads = 0

    def load(self, data):
        self.loads += 1
        if self.payload is not None:
            self.groups[f"group-{self.loads}"] = StubGroup(self.payload, self.fragments)

    def export(self, group):
        return group.payload


NOT_AN_ENGINE = {"groups": {}}
