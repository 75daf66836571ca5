# kubeaudit

`kubeaudit` is a library for finding security issues in Kubernetes resources.
You give it a set of *auditors*, each of which checks for one kind of problem,
and it runs every auditor over every resource it finds.

Resources can come from three places:

1. **Manifest mode**: a YAML manifest, possibly holding several documents
   separated by `---`.
2. **Local mode**: the cluster named in a kubeconfig file.
3. **Cluster mode**: the cluster the process itself runs in, using the
   in-cluster service account.

Resources are plain dictionaries in the shape of their manifest
(`apiVersion`, `kind`, `metadata`, `spec`, ...). Kinds that the package does
not know how to audit are reported with an `Unsupported resource` warning
rather than being skipped. The supported kinds are CronJob, DaemonSet,
Deployment, Namespace, NetworkPolicy, Pod, PodTemplate, ReplicationController,
ServiceAccount and StatefulSet (see `kubeaudit.k8stypes.is_supported_resource_type`).

## What this package does not do

- It ships **no auditors of its own**. You write the auditors; the package
  finds the resources, runs the auditors over them and reports the results.
- It has **no command-line program**. Everything is used from Python.
- A `Report` does not rewrite manifests. Pending fixes can be applied to
  resource objects (`AuditResult.fix`), and `kubeaudit.yamlmerge.merge` can lay
  out fixed YAML in the order of the original, but nothing ties the two
  together into a fixed manifest for you.
- Local mode reads tokens, token files, client certificates and basic-auth
  credentials from a kubeconfig. It does not run credential plugins or
  auth-provider commands.

## Writing an auditor

An auditor subclasses `kubeaudit.auditor.Auditable` and implements
`audit(resource, resources)`. It receives the resource under audit and, for
context, every resource from the same source. It returns a list of
`AuditResult` objects.

```python
from kubeaudit.auditor import Auditable
from kubeaudit.result import AuditResult, SeverityLevel


class MyAuditor(Auditable):
    def audit(self, resource, resources):
        return [
            AuditResult(
                name="MyAudit",
                severity=SeverityLevel.ERROR,
                message="My custom error",
            )
        ]
```

An audit result may carry a `PendingFix` (from `kubeaudit.result`): an object
with `plan()`, a human-readable description of the change, and
`apply(resource)`, which makes that change to the resource in place and returns
any new resources it created. `AuditResult.fix_plan()` returns the plan, or
`None` without a fix. Ready-made fixes for pod-level annotations live in
`kubeaudit.fix`: `BySettingPodAnnotation`, `ByAddingPodAnnotation` and
`ByRemovingPodAnnotation`.

`kubeaudit.runtime` has helpers for navigating resources:
`get_object_meta`, `get_pod_object_meta`, `get_pod_template_spec`,
`get_pod_spec`, `get_containers`, `get_annotations` and `get_labels`, plus
`decode_resource` and `encode_resource`.

## Running an audit

```python
from kubeaudit.auditor import Kubeaudit

auditor = Kubeaudit([MyAuditor()])

with open("deployment.yaml", "rb") as manifest:
    report = auditor.audit_manifest(manifest)
```

`audit_manifest` also accepts bytes or text. A manifest that is not valid YAML
raises `ValueError`.

Local and cluster mode take a `ClientOptions`, which can limit the audit to a
single namespace:

```python
from kubeaudit.client import ClientOptions

report = auditor.audit_local("/path/to/kubeconfig", ClientOptions())
report = auditor.audit_cluster(ClientOptions(namespace="default"))
```

With an empty path, `audit_local` uses the first file in `KUBECONFIG`, then
`~/.kube/config`, then the in-cluster configuration. Resources owned by other
resources (such as the pods of a deployment) are left out.

Errors:

- `Kubeaudit([])` raises `ValueError` ("no auditors enabled").
- `audit_cluster` raises `RuntimeError` when not running inside a cluster.
- `audit_local` raises `kubeaudit.client.NoReadableKubeConfigError` when the
  kubeconfig file does not exist.

`Kubeaudit` also accepts options after the auditors. `kubeaudit.options.with_logger(formatter)`
sets the `logging.Formatter` used for the package's own log messages.

## Reading the report

```python
report.results()                  # resources with at least one finding
report.raw_results()              # every resource, including clean ones
report.results_with_min_severity(SeverityLevel.WARN)
report.has_errors()               # True if any finding is an error
```

Each result is a `WorkloadResult` with a `resource` (a `KubeResource` holding
the decoded `object` and its `raw` bytes) and a list of `audit_results`.
Severities are `SeverityLevel.INFO`, `WARN` and `ERROR`, in that order.

### Printing

`print_results` writes a human-readable report to standard output, coloured
when writing to standard output on systems other than Windows. Options from
`kubeaudit.printer` change where and how it is written:

```python
import io

from kubeaudit.printer import JsonFormatter, with_formatter, with_min_severity, with_writer

report.print_results()
report.print_results(with_min_severity(SeverityLevel.ERROR))

out = io.StringIO()
report.print_results(with_writer(out), with_formatter(JsonFormatter()))
```

With a formatter, each finding becomes one log record carrying the audit
result name, the resource's kind, API version, name and namespace, and the
finding's metadata. `JsonFormatter` writes each record as one JSON line with
those fields and `level`, `msg` and `time`.

`print_plan(writer)` writes one line for each finding that has a pending fix,
describing what the fix would do.

## Overrides

An auditor can be switched off for a pod or a single container with a label on
the pod template. The helpers in `kubeaudit.override` build the label names and
apply the rule:

- `container.audit.kubernetes.io/<container>.<label>` for one container
- `audit.kubernetes.io/pod.<label>` for the whole pod
- `audit.kubernetes.io/namespace.<label>` for a namespace resource

`apply_override` turns a finding covered by such a label into an informational
result named `<name>Allowed`, without its pending fix, and records the label's
value as `OverrideReason` in its metadata (unless the value is empty or
`true`). A label that disables an auditor which found nothing produces a
`RedundantAuditorOverride` warning, so stale labels get noticed.

## Merging YAML

`kubeaudit.yamlmerge.merge(original, fixed)` takes two YAML documents whose
roots are mappings and returns the fixed content in the key order and styles of
the original. Keys missing from the fixed document are dropped, new keys are
appended, and sequence items are matched by their identifying field (for
example a container's `name` or a volume mount's `mountPath`). Comments in the
YAML text are not kept. Invalid or non-mapping input raises `MergeError`.