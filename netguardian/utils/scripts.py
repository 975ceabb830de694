"""
PowerShell script templates for NetGuardian.

Scripts are rendered from a fixed set of placeholders. Every value is turned
into a single-quoted PowerShell literal before substitution, so caller
strings can never break out of the script structure.
"""

from string import Template


class ScriptTemplate(Template):
    # '$' belongs to PowerShell
    delimiter = "@@"


def ps_quote(value) -> str:
    """Return value as a single-quoted PowerShell string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def render_script(template: ScriptTemplate, **params) -> str:
    """Fill a template; a missing placeholder raises KeyError."""
    return template.substitute({key: ps_quote(value) for key, value in params.items()})


DOH_REGISTRATION_SCRIPT = ScriptTemplate(
    """
$dns = @@target_dns; $template = @@doh_template; $alias = @@interface_name;
$existing = Get-DnsClientDohServerAddress -ServerAddress $dns -ErrorAction SilentlyContinue;
if ($existing) {
    Set-DnsClientDohServerAddress -ServerAddress $dns -DohTemplate $template -AllowFallbackToUdp $false -AutoUpgrade $true -ErrorAction Stop | Out-Null;
} else {
    Add-DnsClientDohServerAddress -ServerAddress $dns -DohTemplate $template -AllowFallbackToUdp $false -AutoUpgrade $true -ErrorAction Stop | Out-Null;
}
Clear-DnsClientCache;
Set-DnsClientServerAddress -InterfaceAlias $alias -ServerAddresses $dns -ErrorAction Stop;
"""
)

# Takes no placeholders; rendered through the same path for uniformity.
INTERFACE_QUERY_SCRIPT = ScriptTemplate(
    """
$ErrorActionPreference = 'SilentlyContinue';
$items = @(Get-NetAdapter -IncludeHidden | ForEach-Object {
    $cfg = Get-NetIPConfiguration -InterfaceIndex $_.ifIndex;
    [pscustomobject]@{
        Name = $_.Name;
        Description = $_.InterfaceDescription;
        Status = [string]$_.Status;
        InterfaceType = [int]$_.InterfaceType;
        Speed = [int64]$_.Speed;
        Gateways = @($cfg.IPv4DefaultGateway | ForEach-Object { $_.NextHop });
        DnsServers = @($cfg.DNSServer | Where-Object { $_.AddressFamily -eq 2 } | ForEach-Object { $_.ServerAddresses });
        IPv4 = @($cfg.IPv4Address | ForEach-Object { $_.IPAddress });
    }
});
ConvertTo-Json -InputObject $items -Depth 4 -Compress;
"""
)

VPN_STARTUP_SCRIPT = ScriptTemplate(
    """
$svc = @@service; $dir = @@client_dir; $exe = Join-Path $dir @@client_exe; $log = @@trash_log;
Get-Process -Name '*Forti*', 'fc*' -ErrorAction SilentlyContinue | Stop-Process -Force -ErrorAction SilentlyContinue;
& sc.exe config $svc start= demand > $null 2>&1;
& sc.exe failure $svc reset= 0 actions= '' > $null 2>&1;
Start-Service -Name $svc -ErrorAction SilentlyContinue;
Start-Process -FilePath $exe -WorkingDirectory $dir -WindowStyle Normal -RedirectStandardOutput $log;
"""
)

VPN_SHUTDOWN_SCRIPT = ScriptTemplate(
    """
$svc = @@service;
& sc.exe config $svc start= disabled > $null 2>&1;
Stop-Service -Name $svc -Force -ErrorAction SilentlyContinue;
& taskkill /f /fi "SERVICES eq $svc" /t > $null 2>&1;
Get-Process -Name '*Forti*', 'fc*' -ErrorAction SilentlyContinue | Stop-Process -Force -ErrorAction SilentlyContinue;
"""
)

VPN_GUI_LAUNCH_SCRIPT = ScriptTemplate(
    """
$dir = @@client_dir; $exe = Join-Path $dir @@client_exe; $log = @@trash_log;
if (Test-Path $exe) {
    Start-Process -FilePath $exe -WorkingDirectory $dir -WindowStyle Normal -RedirectStandardOutput $log;
}
"""
)

WORK_OFF_SCRIPT = ScriptTemplate(
    """
wsl --shutdown;
Get-Process -Name (@@process_names -split ',') -ErrorAction SilentlyContinue | Stop-Process -Force;
"""
)
