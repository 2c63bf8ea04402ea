from typing import Dict, Iterable, Optional

from . import config


def _dimension(alarm: Dict, name: str) -> Optional[str]:
    for d in alarm.get("Dimensions") or []:
        if d.get("Name") == name:
            return d.get("Value")
    return None


def log_group_name(desc: Dict, tags: Optional[Dict[str, str]] = None,
                   tagged_namespaces: Optional[Iterable[str]] = None) -> Optional[str]:
    """
    Name of a log group related to the alarm, if one can be worked out.

    Lambda alarms use their FunctionName dimension. Step Functions alarms on
    Lambda states use the function name from LambdaFunctionArn. Alarms in
    namespaces that opt in may name a log group explicitly with a tag.
    """
    alarms = desc.get("MetricAlarms") or []
    if not alarms:
        return None
    alarm = alarms[0]
    namespace = alarm.get("Namespace")
    tagged = config.LOG_GROUP_TAGGED_NAMESPACES if tagged_namespaces is None else tagged_namespaces

    if namespace == "AWS/Lambda":
        fn = _dimension(alarm, "FunctionName")
        return f"/aws/lambda/{fn}" if fn else None

    if namespace == "AWS/States":
        arn = _dimension(alarm, "LambdaFunctionArn") or ""
        if ":function:" in arn:
            return f"/aws/lambda/{arn.split(':function:')[1]}"
        return None

    if namespace in tagged:
        return (tags or {}).get(config.LOG_GROUP_NAME_TAG) or None

    return None
