from nvimlink.cli import main

raise SystemExit(main())
