"""Data records handed to the webhook notifier.

* :class:`NodeMetadata` describes the host being drained.
* :class:`InterruptionEvent` describes what triggered the drain.
* :class:`NotificationRecord` combines both with the cluster name and a
  pod description; it is the data every webhook template renders against.

Fields are snake_case in Python and PascalCase inside templates
(``region`` is ``{{ Region }}``).  Identifier and address fields keep
the upper-case suffix used by existing templates: ``{{ InstanceID }}``,
``{{ EventID }}``, ``{{ PublicIP }}``.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

_TEMPLATE_FIELDS = ConfigDict(alias_generator=to_pascal, populate_by_name=True)


class NodeMetadata(BaseModel):
    """Instance identity and placement of the node.

    Attributes:
        account_id: Cloud account owning the instance.
        instance_id: Instance identifier.
        instance_life_cycle: ``on-demand`` or ``spot``.
        instance_type: Instance size, e.g. ``m5.large``.
        public_hostname: Public DNS name.
        public_ip: Public IPv4 address.
        local_hostname: Private DNS name.
        local_ip: Private IPv4 address.
        availability_zone: Placement zone.
        region: Placement region.
    """

    model_config = _TEMPLATE_FIELDS

    account_id: str = ""
    instance_id: str = Field(default="", alias="InstanceID")
    instance_life_cycle: str = ""
    instance_type: str = ""
    public_hostname: str = ""
    public_ip: str = Field(default="", alias="PublicIP")
    local_hostname: str = ""
    local_ip: str = Field(default="", alias="LocalIP")
    availability_zone: str = ""
    region: str = ""


class InterruptionEvent(BaseModel):
    """A detected node-lifecycle disruption.

    Attributes:
        event_id: Identifier assigned by the detecting monitor.
        kind: Event kind, e.g. ``SPOT_ITN`` or ``SCHEDULED_EVENT``.
        monitor: Name of the monitor that produced the event.
        description: Human-readable summary.
        state: Provider-reported state of the event.
        auto_scaling_group_name: Owning auto-scaling group, if any.
        node_name: Kubernetes node name.
        provider_id: Kubernetes provider id of the node.
        is_managed: Whether the node is managed by this handler.
        start_time: When the interruption takes effect.
        end_time: When the interruption window closes.
        node_labels: Labels on the node at detection time.
        pod_list: Names of pods scheduled on the node (``PodList`` in
            templates).
    """

    model_config = _TEMPLATE_FIELDS

    event_id: str = Field(default="", alias="EventID")
    kind: str = ""
    monitor: str = ""
    description: str = ""
    state: str = ""
    auto_scaling_group_name: str = ""
    node_name: str = ""
    provider_id: str = Field(default="", alias="ProviderID")
    is_managed: bool = False
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    node_labels: dict[str, str] = Field(default_factory=dict)
    pod_list: list[str] = Field(default_factory=list)


class NotificationRecord(BaseModel):
    """Everything a webhook template can reference for one notification."""

    model_config = _TEMPLATE_FIELDS

    node_metadata: NodeMetadata = Field(default_factory=NodeMetadata)
    interruption_event: InterruptionEvent = Field(default_factory=InterruptionEvent)
    cluster: str = ""
    pods: str = ""

    def template_context(self) -> dict[str, Any]:
        """Flatten the record into the mapping templates render against.

        Values are passed through untouched (datetimes stay datetimes).
        """
        context: dict[str, Any] = {}
        for part in (self.node_metadata, self.interruption_event):
            for name, field in type(part).model_fields.items():
                context[field.alias or name] = getattr(part, name)
        context["Cluster"] = self.cluster
        context["Pods"] = self.pods
        return context
